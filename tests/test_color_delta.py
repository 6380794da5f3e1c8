"""
Unit tests for CIE 1976 color difference
"""

import numpy as np
import pytest

from cvscreen.utils.color_delta import delta_e, delta_e_cie1976, path_delta_es


def test_known_value():
    assert delta_e_cie1976((50, 2.5, -10), (55, 3.5, -9)) == pytest.approx(np.sqrt(27))


def test_identical_colors_zero():
    lab = (51.6, -9.6, -19.2)
    assert delta_e_cie1976(lab, lab) == 0.0


def test_symmetry(rng):
    for lab1, lab2 in zip(rng.uniform(-100, 100, size=(50, 3)), rng.uniform(-100, 100, size=(50, 3))):
        assert delta_e_cie1976(lab1, lab2) == delta_e_cie1976(lab2, lab1)


def test_accepts_lists_and_arrays():
    assert delta_e_cie1976([0, 0, 0], np.array([0.0, 3.0, 4.0])) == pytest.approx(5.0)


def test_alias():
    assert delta_e is delta_e_cie1976


def test_path_delta_es():
    labs = [(0, 0, 0), (0, 3, 4), (0, 3, 4), (0, 3, 0)]
    assert path_delta_es(labs) == pytest.approx([5.0, 0.0, 4.0])


def test_path_delta_es_short_path():
    assert path_delta_es([(50, 0, 0)]) == []
