"""
Session Controller Module

Sequences one arrangement test: shuffled presentation with the pilot and
anchor pinned at the ends, cap moves with an interaction log, and
submission of the final ordering to the scorer.
"""

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Union

import numpy as np

from cvscreen.core.arrangement_scorer import ArrangementScorer, ScoreResult
from cvscreen.core.cap_dataset import HueCap, Panel, get_panel
from cvscreen.schemas.score_schemas import PanelType

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Base exception for session errors"""

    pass


class FixedCapError(SessionError):
    """Pilot / anchor caps cannot be moved or displaced"""

    pass


class UnknownCapError(SessionError):
    """Cap id is not part of the current arrangement"""

    pass


class SessionClosedError(SessionError):
    """Session was already submitted"""

    pass


@dataclass(frozen=True)
class Interaction:
    """One cap move"""

    cap_id: str
    from_index: int
    to_index: int
    timestamp: float  # epoch milliseconds


@dataclass
class SessionOutcome:
    """Score plus session bookkeeping handed to reporting collaborators"""

    result: ScoreResult
    interactions: List[Interaction]
    interaction_stats: Dict[str, object]
    shuffle_count: int
    reset_count: int
    runtime_ms: Optional[float] = None
    arrangement: List[str] = field(default_factory=list)


def create_initial_arrangement(panel: Panel, rng: Optional[np.random.Generator] = None) -> List[HueCap]:
    """
    Pilot first, movable caps shuffled, anchor last.

    Any extra fixed caps (none in the shipped panels) go just before the anchor.
    """
    rng = rng if rng is not None else np.random.default_rng()
    fixed = list(panel.fixed_caps)
    movable = list(panel.movable_caps)
    order = rng.permutation(len(movable))
    shuffled = [movable[i] for i in order]

    start = fixed[:1]
    end = fixed[-1:] if len(fixed) > 1 else []
    middle = fixed[1:-1] if len(fixed) > 2 else []
    return start + shuffled + middle + end


def _now_ms() -> float:
    return time.time() * 1000.0


class TestSession:
    """
    One subject's arrangement test on one panel.

    Not thread-safe; each subject gets their own session. The panel data it
    reads is shared and immutable.
    """

    __test__ = False  # keep pytest from collecting this class

    def __init__(
        self,
        panel_type: Union[PanelType, str] = PanelType.D15,
        rng: Optional[np.random.Generator] = None,
        clock: Optional[Callable[[], float]] = None,
        scorer: Optional[ArrangementScorer] = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock or _now_ms
        self.scorer = scorer or ArrangementScorer()
        self._start(get_panel(panel_type))

    def _start(self, panel: Panel):
        self.panel = panel
        self.arrangement: List[HueCap] = create_initial_arrangement(panel, self.rng)
        self.interactions: List[Interaction] = []
        self.shuffle_count = 0
        self.reset_count = 0
        self.started_at = self.clock()
        self.submitted = False
        logger.debug(f"Session started on {panel.panel_type.value}: {self.cap_sequence()}")

    @property
    def panel_type(self) -> PanelType:
        return self.panel.panel_type

    def cap_sequence(self) -> List[str]:
        """Movable cap ids in current order."""
        return [cap.cap_id for cap in self.arrangement if not cap.is_fixed]

    def _index_of(self, cap_id: str) -> int:
        for i, cap in enumerate(self.arrangement):
            if cap.cap_id == cap_id:
                return i
        raise UnknownCapError(f"Cap {cap_id} is not in the {self.panel_type.value} arrangement")

    def _check_open(self):
        if self.submitted:
            raise SessionClosedError("Session already submitted")

    def move_cap(self, source_id: str, target_id: str) -> Interaction:
        """
        Move a cap into the position currently held by another cap.

        The source is removed and re-inserted at the target's index, shifting
        the caps in between by one.

        Raises:
            FixedCapError: source or target is the pilot or anchor
            UnknownCapError: id not in this arrangement
        """
        self._check_open()
        from_index = self._index_of(source_id)
        to_index = self._index_of(target_id)
        if self.arrangement[from_index].is_fixed:
            raise FixedCapError(f"Cap {source_id} is fixed")
        if self.arrangement[to_index].is_fixed:
            raise FixedCapError(f"Cannot place a cap onto fixed cap {target_id}")

        moved = self.arrangement.pop(from_index)
        self.arrangement.insert(to_index, moved)

        interaction = Interaction(source_id, from_index, to_index, self.clock())
        self.interactions.append(interaction)
        return interaction

    def place(self, cap_sequence: Sequence[str]):
        """Replace the movable part of the arrangement in one step (e.g. from a UI)."""
        self._check_open()
        caps = [self.panel.get_cap(cap_id) if self.panel.has_cap(cap_id) else None for cap_id in cap_sequence]
        unknown = [cap_id for cap_id, cap in zip(cap_sequence, caps) if cap is None]
        if unknown:
            raise UnknownCapError(f"Caps not in {self.panel_type.value}: {unknown}")
        pinned = [cap.cap_id for cap in caps if cap.is_fixed]
        if pinned:
            raise FixedCapError(f"Fixed caps cannot be placed: {pinned}")
        fixed = list(self.panel.fixed_caps)
        self.arrangement = fixed[:1] + caps + fixed[1:]

    def shuffle(self):
        """Reshuffle the movable caps, keeping the interaction log."""
        self._check_open()
        self.arrangement = create_initial_arrangement(self.panel, self.rng)
        self.shuffle_count += 1

    def reset(self):
        """Reshuffle and clear the interaction log."""
        self._check_open()
        self.arrangement = create_initial_arrangement(self.panel, self.rng)
        self.interactions = []
        self.reset_count += 1

    def switch_panel(self, panel_type: Union[PanelType, str]):
        """Start over on another panel."""
        self._check_open()
        self._start(get_panel(panel_type))

    def interaction_stats(self) -> Dict[str, object]:
        reorders = Counter(log.cap_id for log in self.interactions)
        return {"total": len(self.interactions), "reorders_by_cap": dict(reorders)}

    def submit(self, scorer: Optional[ArrangementScorer] = None) -> SessionOutcome:
        """
        Score the current arrangement and close the session.

        Raises:
            SessionClosedError: already submitted
            InvalidSequence: arrangement does not hold every movable cap exactly once
        """
        self._check_open()
        scorer = scorer or self.scorer
        result = scorer.score(self.panel_type, self.cap_sequence())
        self.submitted = True

        outcome = SessionOutcome(
            result=result,
            interactions=list(self.interactions),
            interaction_stats=self.interaction_stats(),
            shuffle_count=self.shuffle_count,
            reset_count=self.reset_count,
            runtime_ms=self.clock() - self.started_at,
            arrangement=[cap.cap_id for cap in self.arrangement],
        )
        logger.info(
            f"Session submitted on {self.panel_type.value}: "
            f"{len(self.interactions)} moves, {result.classification.value}/{result.severity.value}"
        )
        return outcome
