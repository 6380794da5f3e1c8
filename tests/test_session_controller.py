"""
Unit tests for TestSession
"""

import numpy as np
import pytest

from cvscreen.core.arrangement_scorer import ArrangementScorer, InvalidSequence
from cvscreen.core.cap_dataset import PANELS, UnknownPanelError
from cvscreen.core.session_controller import (
    FixedCapError,
    SessionClosedError,
    TestSession,
    UnknownCapError,
    create_initial_arrangement,
)
from cvscreen.schemas.score_schemas import Classification, PanelType, ScoringCriteria
from tests.conftest import DEUTAN_PATTERN, caps_for


class FakeClock:
    def __init__(self, start=1000.0, step=250.0):
        self.now = start
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def session():
    return TestSession("D15", rng=np.random.default_rng(7), clock=FakeClock())


def test_initial_arrangement_pins_fixed_caps():
    panel = PANELS[PanelType.D15]
    arrangement = create_initial_arrangement(panel, np.random.default_rng(1))

    assert arrangement[0] is panel.pilot
    assert arrangement[-1] is panel.anchor
    assert sorted(cap.cap_id for cap in arrangement[1:-1]) == sorted(panel.reference_order)


def test_initial_arrangement_is_seedable():
    panel = PANELS[PanelType.LD15]
    first = create_initial_arrangement(panel, np.random.default_rng(3))
    second = create_initial_arrangement(panel, np.random.default_rng(3))
    assert [c.cap_id for c in first] == [c.cap_id for c in second]


def test_cap_sequence_excludes_fixed(session):
    sequence = session.cap_sequence()
    assert len(sequence) == 15
    assert "D15_PILOT" not in sequence and "D15_ANCHOR_END" not in sequence


def test_move_cap_reinserts_at_target(session):
    session.place(list(PANELS[PanelType.D15].reference_order))
    interaction = session.move_cap("D15_05", "D15_02")

    assert session.cap_sequence()[:6] == ["D15_01", "D15_05", "D15_02", "D15_03", "D15_04", "D15_06"]
    assert interaction.cap_id == "D15_05"
    assert (interaction.from_index, interaction.to_index) == (5, 2)
    assert session.arrangement[0].cap_id == "D15_PILOT"
    assert session.arrangement[-1].cap_id == "D15_ANCHOR_END"


def test_move_fixed_cap_rejected(session):
    with pytest.raises(FixedCapError):
        session.move_cap("D15_PILOT", session.cap_sequence()[0])
    with pytest.raises(FixedCapError):
        session.move_cap(session.cap_sequence()[0], "D15_ANCHOR_END")


def test_move_unknown_cap_rejected(session):
    with pytest.raises(UnknownCapError):
        session.move_cap("LD15_01", session.cap_sequence()[0])


def test_place_rejects_fixed_and_unknown(session):
    with pytest.raises(FixedCapError):
        session.place(["D15_PILOT"])
    with pytest.raises(UnknownCapError):
        session.place(["D15_42"])


def test_reset_clears_interactions(session):
    seq = session.cap_sequence()
    session.move_cap(seq[0], seq[1])
    session.reset()

    assert session.interactions == []
    assert session.reset_count == 1
    assert sorted(session.cap_sequence()) == sorted(seq)


def test_shuffle_keeps_history(session):
    seq = session.cap_sequence()
    session.move_cap(seq[0], seq[1])
    session.shuffle()

    assert len(session.interactions) == 1
    assert session.shuffle_count == 1


def test_switch_panel(session):
    session.switch_panel("LD15")
    assert session.panel_type == PanelType.LD15
    assert all(cap_id.startswith("LD15_") for cap_id in session.cap_sequence())
    assert session.interactions == []

    with pytest.raises(UnknownPanelError):
        session.switch_panel("XX")


def test_submit_reference_order(session):
    session.place(list(PANELS[PanelType.D15].reference_order))
    outcome = session.submit()

    assert outcome.result.classification == Classification.NORMAL
    assert outcome.runtime_ms > 0
    assert outcome.arrangement[0] == "D15_PILOT"
    assert outcome.arrangement[-1] == "D15_ANCHOR_END"


def test_submit_records_interaction_stats(session):
    session.place(caps_for(PanelType.D15, DEUTAN_PATTERN))
    session.move_cap("D15_08", "D15_09")
    session.move_cap("D15_08", "D15_09")
    outcome = session.submit()

    assert outcome.interaction_stats["total"] == 2
    assert outcome.interaction_stats["reorders_by_cap"] == {"D15_08": 2}
    assert outcome.result.classification == Classification.DEUTAN


def test_submit_twice_rejected(session):
    session.submit()
    with pytest.raises(SessionClosedError):
        session.submit()
    with pytest.raises(SessionClosedError):
        session.move_cap("D15_01", "D15_02")


def test_submit_incomplete_placement(session):
    session.place(["D15_01", "D15_02"])
    with pytest.raises(InvalidSequence):
        session.submit()
    assert session.submitted is False


def test_submit_with_custom_scorer(session):
    session.place(caps_for(PanelType.D15, DEUTAN_PATTERN))
    lenient = ArrangementScorer(ScoringCriteria(normal_variation_ratio=3.0))
    outcome = session.submit(lenient)
    assert outcome.result.classification == Classification.NORMAL
