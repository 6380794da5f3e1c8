"""
Unit tests for the D15 / LD15 reference dataset
"""

import dataclasses

import numpy as np
import pytest

from cvscreen.core.cap_dataset import (
    D15_CAPS,
    DATASET_VERSION,
    LD15_CAPS,
    PANELS,
    DatasetVersionMismatch,
    UnknownPanelError,
    dataset_fingerprint,
    get_panel,
    verify_dataset_version,
)
from cvscreen.schemas.score_schemas import PanelType


@pytest.mark.parametrize("panel_type", list(PanelType))
class TestPanelInvariants:
    def test_seventeen_caps(self, panel_type):
        assert len(PANELS[panel_type].caps) == 17

    def test_two_fixed_fifteen_movable(self, panel_type):
        panel = PANELS[panel_type]
        assert len(panel.fixed_caps) == 2
        assert len(panel.movable_caps) == 15

    def test_pilot_first_anchor_last(self, panel_type):
        panel = PANELS[panel_type]
        assert panel.caps[0].is_fixed and panel.caps[0].cap_id.endswith("_PILOT")
        assert panel.caps[-1].is_fixed and panel.caps[-1].cap_id.endswith("_ANCHOR_END")

    def test_anchor_repeats_last_movable_exactly(self, panel_type):
        panel = PANELS[panel_type]
        assert panel.anchor.lab == panel.movable_caps[-1].lab

    def test_unique_ids_and_panel_tags(self, panel_type):
        panel = PANELS[panel_type]
        ids = [cap.cap_id for cap in panel.caps]
        assert len(set(ids)) == len(ids)
        assert all(cap.panel_type == panel_type for cap in panel.caps)

    def test_reference_order(self, panel_type):
        panel = PANELS[panel_type]
        assert panel.reference_order == tuple(f"{panel_type.value}_{n:02d}" for n in range(1, 16))
        assert panel.ideal_index(panel.pilot.cap_id) == 0
        assert panel.ideal_index(panel.anchor.cap_id) == 16

    def test_lab_ranges(self, panel_type):
        for cap in PANELS[panel_type].caps:
            L, a, b = cap.lab
            assert 0.0 <= L <= 100.0
            assert -128.0 <= a <= 128.0 and -128.0 <= b <= 128.0


def test_d15_constants():
    by_id = {cap.cap_id: cap.lab for cap in D15_CAPS}
    assert by_id["D15_PILOT"] == (51.0, -8.7, -25.9)
    assert by_id["D15_01"] == (51.6, -9.6, -19.2)
    assert by_id["D15_08"] == (49.5, -11.7, 28.0)
    assert by_id["D15_15"] == (49.5, 11.0, -13.3)


def test_ld15_constants():
    by_id = {cap.cap_id: cap.lab for cap in LD15_CAPS}
    np.testing.assert_allclose(by_id["LD15_PILOT"], (78.8, -3.78, -11.23))
    np.testing.assert_allclose(by_id["LD15_07"], (78.9, -6.91, 9.72))
    np.testing.assert_allclose(by_id["LD15_15"], (78.2, 4.75, -5.72))


def test_ld15_is_desaturated_relative_to_d15():
    for d15, ld15 in zip(D15_CAPS, LD15_CAPS):
        assert np.hypot(ld15.lab[1], ld15.lab[2]) < np.hypot(d15.lab[1], d15.lab[2])


def test_panels_mapping_is_read_only():
    with pytest.raises(TypeError):
        PANELS[PanelType.D15] = PANELS[PanelType.LD15]


def test_caps_are_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        D15_CAPS[1].lab = (0.0, 0.0, 0.0)


def test_get_panel_accepts_strings():
    assert get_panel("LD15") is PANELS[PanelType.LD15]
    assert get_panel(PanelType.D15) is PANELS[PanelType.D15]


def test_get_panel_unknown():
    with pytest.raises(UnknownPanelError):
        get_panel("D28")


class TestVersioning:
    def test_fingerprint_is_stable(self):
        assert dataset_fingerprint() == dataset_fingerprint()
        assert len(dataset_fingerprint()) == 64

    def test_fingerprint_differs_per_panel(self):
        assert dataset_fingerprint("D15") != dataset_fingerprint("LD15")
        assert dataset_fingerprint("D15") != dataset_fingerprint()

    def test_verify_current_version(self):
        verify_dataset_version(DATASET_VERSION)
        verify_dataset_version(DATASET_VERSION, dataset_fingerprint("D15"), panel_type="D15")

    def test_verify_old_version(self):
        with pytest.raises(DatasetVersionMismatch):
            verify_dataset_version("0.0.1")

    def test_verify_wrong_fingerprint(self):
        with pytest.raises(DatasetVersionMismatch):
            verify_dataset_version(DATASET_VERSION, "0" * 64)
