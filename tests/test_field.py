import numpy as np
import pygame
import pytest

import field
from constants import INK_ALPHA_THRESHOLD, LABEL_TEXT
from field import (
    COMPACT, STANDARD, generate_base_positions, rasterize_label, sample_ink, select_profile
)


@pytest.mark.parametrize("width, expected", [
    (320, COMPACT),
    (767, COMPACT),
    (768, STANDARD),
    (1920, STANDARD),
])
def test_select_profile_breakpoint(width, expected):
    assert select_profile(width) is expected


def test_profile_font_size_and_gap():
    assert COMPACT.font_size(400) == 120
    assert COMPACT.font_size(700) == 160
    assert COMPACT.gap(400) == 10

    assert STANDARD.font_size(1024) == 256
    assert STANDARD.font_size(2400) == 400
    assert STANDARD.gap(1024) == 6
    assert STANDARD.gap(768) == 5
    assert STANDARD.gap(500) == 4


def test_sample_ink_uses_strict_threshold_and_grid():
    alpha = np.zeros((20, 10), dtype=np.uint8)  # [x, y]
    alpha[4, 2] = 255
    alpha[8, 2] = INK_ALPHA_THRESHOLD          # not above the threshold
    alpha[12, 6] = INK_ALPHA_THRESHOLD + 1
    alpha[5, 2] = 255                           # off the grid

    cells = sample_ink(alpha, gap=2)

    assert cells.tolist() == [[4.0, 2.0], [12.0, 6.0]]


def test_sample_ink_orders_rows_first():
    alpha = np.full((6, 6), 255, dtype=np.uint8)

    cells = sample_ink(alpha, gap=3)

    assert cells.tolist() == [[0, 0], [3, 0], [0, 3], [3, 3]]


def test_sample_ink_empty_alpha():
    cells = sample_ink(np.zeros((0, 0), dtype=np.uint8), gap=4)
    assert cells.shape == (0, 2)


def test_zero_area_surface_gives_empty_field():
    base_xy, profile = generate_base_positions(0, 0)

    assert base_xy.shape == (0, 2)
    assert profile is COMPACT


def test_standard_surface_scenario():
    width, height = 1024, 768
    base_xy, profile = generate_base_positions(width, height)

    assert profile is STANDARD
    assert 200 < len(base_xy) < 10000
    assert np.all((base_xy[:, 0] >= 0) & (base_xy[:, 0] < width))
    assert np.all((base_xy[:, 1] >= 0) & (base_xy[:, 1] < height))
    assert np.all(base_xy % profile.gap(width) == 0)


def test_base_positions_are_ink_pixels():
    width, height = 1024, 768
    base_xy, profile = generate_base_positions(width, height)
    alpha = rasterize_label(LABEL_TEXT, width, height, profile.font_size(width))

    xs = base_xy[:, 0].astype(int)
    ys = base_xy[:, 1].astype(int)
    assert np.all(alpha[xs, ys] > INK_ALPHA_THRESHOLD)


def test_regeneration_count_is_stable():
    counts = {len(generate_base_positions(900, 600)[0]) for _ in range(3)}
    assert len(counts) == 1


def test_rasterized_label_is_centred():
    alpha = rasterize_label(LABEL_TEXT, 400, 300, 120)
    assert alpha.shape == (400, 300)

    xs, ys = np.nonzero(alpha > INK_ALPHA_THRESHOLD)
    assert abs(xs.mean() - 200) < 40
    assert abs(ys.mean() - 150) < 40


@pytest.mark.parametrize("error", [pygame.error("no video"), NotImplementedError("font module missing")])
def test_unavailable_drawing_context_gives_empty_field(monkeypatch, error):
    def fail(*args, **kwargs):
        raise error

    monkeypatch.setattr(field, "rasterize_label", fail)

    base_xy, profile = field.generate_base_positions(400, 300)

    assert base_xy.shape == (0, 2)
    assert profile is COMPACT
