"""
Arrangement Scorer Module

Scores a subject's cap arrangement against the panel's reference order.

Pipeline:
1. Path: pilot → submitted caps → anchor, as Lab points
2. Total error: excess ΔE*ab path length over the ideal path
3. Confusion axis: baseline axis of the fixed caps, subject axis of the
   crossing adjacencies, offset between the two
4. Classification by offset band, severity by error magnitude
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from cvscreen.core.cap_dataset import DATASET_VERSION, HueCap, Panel, UnknownPanelError, get_panel
from cvscreen.schemas.score_schemas import Classification, PanelType, ScoreRequest, ScoringCriteria, Severity
from cvscreen.utils.color_delta import delta_e_cie1976, path_delta_es
from cvscreen.utils.color_space import Lab, confusion_axis_angle

logger = logging.getLogger(__name__)


class ScoringError(Exception):
    """Base exception for arrangement scoring errors"""

    pass


class InvalidSequence(ScoringError):
    """Submitted cap sequence has wrong cardinality, duplicates, or foreign caps"""

    pass


@dataclass(frozen=True)
class Crossing:
    """Adjacency in the submitted path that jumps across the hue circle"""

    from_cap: str
    to_cap: str
    step: int  # ideal-order index distance
    delta_e: float


@dataclass(frozen=True)
class ScoreResult:
    """
    Score of one completed arrangement.

    Attributes:
        panel_type: panel the sequence was scored against
        cap_sequence: submitted movable cap ids
        total_error: excess ΔE*ab of the actual path over the ideal path (0 for reference order)
        confusion_angle_degrees: raw subject axis on the a*b* plane, [0, 180);
            classification bands are not applied to this value
        classification: normal / protan / deutan / tritan / indeterminate
        severity: none / mild / moderate / strong
        path_length: summed ΔE*ab of the actual path
        ideal_path_length: summed ΔE*ab of the reference path
        confusion_index: path_length / ideal_path_length
        baseline_angle_degrees: axis through the fixed caps
        axis_offset_degrees: subject axis relative to the baseline axis, [0, 180);
            the protan / deutan / tritan bands apply to this value
        crossings: crossing adjacencies
        path_intersections: self-intersections of the path drawn on the a*b* plane
        arrangement_score: 0~100 displacement score (100 = reference or reversed order)
        pair_delta_es: ΔE*ab per adjacency of the actual path
        dataset_version: reference data version
    """

    panel_type: PanelType
    cap_sequence: Tuple[str, ...]
    total_error: float
    confusion_angle_degrees: float
    classification: Classification
    severity: Severity
    path_length: float
    ideal_path_length: float
    confusion_index: float
    baseline_angle_degrees: float
    axis_offset_degrees: float
    crossings: Tuple[Crossing, ...]
    path_intersections: int
    arrangement_score: int
    pair_delta_es: Tuple[float, ...]
    dataset_version: str = DATASET_VERSION

    @property
    def is_normal(self) -> bool:
        return self.classification == Classification.NORMAL

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready payload for reporting / persistence collaborators."""
        data = asdict(self)
        data["panel_type"] = self.panel_type.value
        data["classification"] = self.classification.value
        data["severity"] = self.severity.value
        data["cap_sequence"] = list(self.cap_sequence)
        data["pair_delta_es"] = list(self.pair_delta_es)
        data["crossings"] = len(self.crossings)
        return data


def validate_sequence(panel: Panel, cap_sequence: Sequence[str]) -> List[HueCap]:
    """
    Check a submitted sequence against the panel and resolve it to caps.

    Raises:
        InvalidSequence: wrong count, duplicates, fixed caps, or ids outside the panel
    """
    if isinstance(cap_sequence, str) or cap_sequence is None:
        raise InvalidSequence("Cap sequence must be a list of cap ids")

    cap_sequence = list(cap_sequence)
    non_str = [cap_id for cap_id in cap_sequence if not isinstance(cap_id, str)]
    if non_str:
        raise InvalidSequence(f"Cap ids must be strings, got: {non_str}")

    expected = len(panel.movable_caps)
    name = panel.panel_type.value

    foreign = [cap_id for cap_id in cap_sequence if not panel.has_cap(cap_id)]
    if foreign:
        raise InvalidSequence(f"{name}: caps not in panel: {foreign}")

    fixed = [cap_id for cap_id in cap_sequence if panel.get_cap(cap_id).is_fixed]
    if fixed:
        raise InvalidSequence(f"{name}: fixed caps cannot be placed: {fixed}")

    seen = set()
    duplicates = []
    for cap_id in cap_sequence:
        if cap_id in seen:
            duplicates.append(cap_id)
        seen.add(cap_id)
    if duplicates:
        raise InvalidSequence(f"{name}: duplicate caps: {duplicates}")

    if len(cap_sequence) != expected:
        missing = [cap_id for cap_id in panel.reference_order if cap_id not in seen]
        raise InvalidSequence(f"{name}: expected {expected} caps, got {len(cap_sequence)} (missing: {missing})")

    return [panel.get_cap(cap_id) for cap_id in cap_sequence]


def count_path_intersections(labs: Sequence[Lab]) -> int:
    """
    Count proper intersections between non-adjacent segments of a path on the a*b* plane.

    Segments sharing an endpoint (consecutive segments, and the first/last pair
    which meet near the pilot) are skipped. Parallel segments never count.
    """
    points = [(float(lab[1]), float(lab[2])) for lab in labs]
    n_segments = len(points) - 1
    count = 0
    for i in range(n_segments):
        for j in range(i + 2, n_segments):
            if i == 0 and j == n_segments - 1:
                continue
            (a1, b1), (a2, b2) = points[i], points[i + 1]
            (a3, b3), (a4, b4) = points[j], points[j + 1]

            d = (b4 - b3) * (a2 - a1) - (a4 - a3) * (b2 - b1)
            if d == 0:
                continue
            ua = ((a4 - a3) * (b1 - b3) - (b4 - b3) * (a1 - a3)) / d
            ub = ((a2 - a1) * (b1 - b3) - (b2 - b1) * (a1 - a3)) / d
            if 0 < ua < 1 and 0 < ub < 1:
                count += 1
    return count


def arrangement_score(cap_sequence: Sequence[str], reference_order: Sequence[str]) -> int:
    """
    0~100 displacement score.

    Sum of |placed index - reference index| over all caps, normalized by
    n(n-1)/2. Reference order, or its exact reversal, scores 100.
    """
    placed = list(cap_sequence)
    reference = list(reference_order)
    if placed == reference or placed == reference[::-1]:
        return 100

    index_map = {cap_id: i for i, cap_id in enumerate(reference)}
    displacement = sum(abs(i - index_map[cap_id]) for i, cap_id in enumerate(placed))
    max_displacement = len(reference) * (len(reference) - 1) / 2 or 1
    return int(max(0, round(100 * (1 - displacement / max_displacement))))


def _in_band(angle: float, band: Tuple[float, float]) -> bool:
    start, end = band
    if start < end:
        return start <= angle < end
    # wraps through 180/0
    return angle >= start or angle < end


class ArrangementScorer:
    """
    Cap arrangement scorer.

    Stateless apart from its (immutable) calibration, so one instance can be
    shared by any number of concurrent sessions.
    """

    def __init__(self, criteria: Optional[ScoringCriteria] = None):
        self.criteria = criteria or ScoringCriteria()

    def normal_threshold(self, panel: Panel) -> float:
        """Panel-specific normal-variation threshold on total error."""
        return self.criteria.normal_variation_ratio * self.ideal_path_length(panel)

    @staticmethod
    def ideal_path_length(panel: Panel) -> float:
        return float(sum(path_delta_es([cap.lab for cap in panel.caps])))

    @staticmethod
    def baseline_angle(panel: Panel) -> float:
        return confusion_axis_angle([cap.lab for cap in panel.fixed_caps])

    def find_crossings(self, panel: Panel, path: Sequence[HueCap]) -> List[Crossing]:
        """Adjacencies whose reference positions are more than crossing_step_threshold apart."""
        crossings = []
        for cap, nxt in zip(path[:-1], path[1:]):
            step = abs(panel.ideal_index(cap.cap_id) - panel.ideal_index(nxt.cap_id))
            if step > self.criteria.crossing_step_threshold:
                crossings.append(Crossing(cap.cap_id, nxt.cap_id, step, delta_e_cie1976(cap.lab, nxt.lab)))
        return crossings

    @staticmethod
    def crossing_axis_angle(panel: Panel, crossings: Sequence[Crossing]) -> float:
        """
        Confusion axis of the crossing caps.

        Each crossing pair is centered on its own midpoint so the axis follows
        the direction of the jumps, not their position on the hue circle.
        """
        points = []
        for crossing in crossings:
            p = np.asarray(panel.get_cap(crossing.from_cap).lab, dtype=float)
            q = np.asarray(panel.get_cap(crossing.to_cap).lab, dtype=float)
            mid = (p + q) / 2.0
            points.append(tuple(p - mid))
            points.append(tuple(q - mid))
        return confusion_axis_angle(points)

    def classify(self, total_error: float, threshold: float, n_crossings: int, axis_offset: float) -> Classification:
        if total_error < threshold:
            return Classification.NORMAL
        if n_crossings < self.criteria.min_crossings:
            return Classification.INDETERMINATE
        for classification, band in self.criteria.bands():
            if _in_band(axis_offset, band):
                return classification
        return Classification.INDETERMINATE

    def grade_severity(self, total_error: float, threshold: float) -> Severity:
        if total_error < threshold:
            return Severity.NONE
        if total_error < self.criteria.mild_multiple * threshold:
            return Severity.MILD
        if total_error < self.criteria.moderate_multiple * threshold:
            return Severity.MODERATE
        return Severity.STRONG

    def score(self, panel_type: Union[PanelType, str], cap_sequence: Sequence[str]) -> ScoreResult:
        """
        Score a completed arrangement.

        Args:
            panel_type: "D15" or "LD15"
            cap_sequence: movable cap ids in placed order (pilot/anchor excluded)

        Returns:
            ScoreResult

        Raises:
            InvalidSequence: malformed sequence or unknown panel
        """
        try:
            panel = get_panel(panel_type)
        except UnknownPanelError as e:
            raise InvalidSequence(str(e)) from e

        placed = validate_sequence(panel, cap_sequence)
        logger.debug(f"Scoring {panel.panel_type.value} arrangement: {[cap.cap_id for cap in placed]}")

        # 1. Actual path
        path = [panel.pilot, *placed, panel.anchor]
        labs = [cap.lab for cap in path]

        # 2. Total error
        pair_des = path_delta_es(labs)
        path_length = float(sum(pair_des))
        ideal_length = self.ideal_path_length(panel)
        total_error = max(0.0, path_length - ideal_length)
        if total_error < 1e-9:
            total_error = 0.0

        # 3. Confusion axis
        baseline = self.baseline_angle(panel)
        crossings = self.find_crossings(panel, path)
        axis_angle = self.crossing_axis_angle(panel, crossings)
        axis_offset = (axis_angle - baseline) % 180.0
        if axis_offset >= 180.0:
            axis_offset = 0.0

        # 4-5. Classification / severity
        threshold = self.normal_threshold(panel)
        classification = self.classify(total_error, threshold, len(crossings), axis_offset)
        severity = self.grade_severity(total_error, threshold)

        result = ScoreResult(
            panel_type=panel.panel_type,
            cap_sequence=tuple(cap.cap_id for cap in placed),
            total_error=total_error,
            confusion_angle_degrees=axis_angle,
            classification=classification,
            severity=severity,
            path_length=path_length,
            ideal_path_length=ideal_length,
            confusion_index=path_length / ideal_length if ideal_length > 0 else 0.0,
            baseline_angle_degrees=baseline,
            axis_offset_degrees=axis_offset,
            crossings=tuple(crossings),
            path_intersections=count_path_intersections(labs),
            arrangement_score=arrangement_score(
                [cap.cap_id for cap in placed], panel.reference_order
            ),
            pair_delta_es=tuple(pair_des),
        )

        logger.info(
            f"{panel.panel_type.value} scored: {classification.value}/{severity.value} "
            f"(error={total_error:.2f}, axis={axis_angle:.1f}°, crossings={len(crossings)})"
        )
        return result

    def score_request(self, request: ScoreRequest) -> ScoreResult:
        """Score a validated ScoreRequest payload."""
        return self.score(request.panel_type, request.cap_sequence)


def score_arrangement(
    panel_type: Union[PanelType, str], cap_sequence: Sequence[str], criteria: Optional[ScoringCriteria] = None
) -> ScoreResult:
    """Convenience wrapper: score with a one-off scorer."""
    return ArrangementScorer(criteria).score(panel_type, cap_sequence)
