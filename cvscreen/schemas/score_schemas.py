"""
Scoring Schemas

Pydantic models for scoring calibration and for the score payload handed to
reporting / persistence collaborators.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class PanelType(str, Enum):
    """Cap panel variants"""

    D15 = "D15"
    LD15 = "LD15"


class Classification(str, Enum):
    """Diagnostic classification of an arrangement"""

    NORMAL = "normal"
    PROTAN = "protan"
    DEUTAN = "deutan"
    TRITAN = "tritan"
    INDETERMINATE = "indeterminate"


class Severity(str, Enum):
    """Severity grade, ordered from none to strong"""

    NONE = "none"
    MILD = "mild"
    MODERATE = "moderate"
    STRONG = "strong"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


class ScoringCriteria(BaseModel):
    """
    Scoring calibration

    Crossing detection and classification bands are clinical calibration
    choices, so they live here rather than in the scorer. Band angles are
    measured relative to the panel's baseline axis (pilot → anchor) and may
    wrap around 180° when start > end.
    """

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "crossing_step_threshold": 3,
                "min_crossings": 2,
                "normal_variation_ratio": 0.2,
                "mild_multiple": 4.0,
                "moderate_multiple": 9.0,
                "protan_band": [0.0, 25.0],
                "deutan_band": [135.0, 180.0],
                "tritan_band": [65.0, 115.0],
            }
        },
    }

    # Crossing detection
    crossing_step_threshold: int = Field(
        default=3, description="Adjacent caps more than this many hue steps apart count as a crossing", ge=1, le=15
    )
    min_crossings: int = Field(
        default=2, description="Minimum crossings needed before an axis is classified", ge=1, le=16
    )

    # Severity thresholds
    normal_variation_ratio: float = Field(
        default=0.2,
        description="Normal-variation threshold as a fraction of the panel's ideal path length",
        gt=0.0,
        le=5.0,
    )
    mild_multiple: float = Field(default=4.0, description="Excess below this × threshold → mild", gt=1.0)
    moderate_multiple: float = Field(default=9.0, description="Excess below this × threshold → moderate", gt=1.0)

    # Classification bands (degrees, relative to baseline axis)
    protan_band: Tuple[float, float] = Field(default=(0.0, 25.0), description="Protan axis offset band")
    deutan_band: Tuple[float, float] = Field(default=(135.0, 180.0), description="Deutan axis offset band")
    tritan_band: Tuple[float, float] = Field(default=(65.0, 115.0), description="Tritan axis offset band")

    @field_validator("protan_band", "deutan_band", "tritan_band")
    @classmethod
    def _band_in_range(cls, band: Tuple[float, float]) -> Tuple[float, float]:
        start, end = band
        if not (0.0 <= start <= 180.0 and 0.0 <= end <= 180.0):
            raise ValueError(f"band bounds must be within [0, 180]: {band}")
        if start == end:
            raise ValueError(f"band must not be empty: {band}")
        return band

    @model_validator(mode="after")
    def _multiples_ordered(self) -> "ScoringCriteria":
        if self.moderate_multiple <= self.mild_multiple:
            raise ValueError("moderate_multiple must be greater than mild_multiple")
        return self

    def bands(self) -> List[Tuple[Classification, Tuple[float, float]]]:
        return [
            (Classification.PROTAN, self.protan_band),
            (Classification.DEUTAN, self.deutan_band),
            (Classification.TRITAN, self.tritan_band),
        ]


class ScoreRequest(BaseModel):
    """Completed arrangement submitted for scoring"""

    model_config = {
        "json_schema_extra": {
            "example": {
                "panel_type": "D15",
                "cap_sequence": ["D15_01", "D15_02", "D15_03", "...", "D15_15"],
            }
        },
    }

    panel_type: PanelType = Field(..., description="Panel the caps belong to")
    cap_sequence: List[str] = Field(..., description="Movable cap ids in placed order (no pilot/anchor)")

    @field_validator("cap_sequence")
    @classmethod
    def _strip_ids(cls, cap_sequence: List[str]) -> List[str]:
        stripped = [cap_id.strip() for cap_id in cap_sequence]
        if any(not cap_id for cap_id in stripped):
            raise ValueError("cap ids must be non-empty")
        return stripped


class ScoreResultSchema(BaseModel):
    """
    Score payload for reporting / persistence

    Mirrors ScoreResult; dataset_version lets a stored score be re-validated
    against the reference data that produced it.
    """

    panel_type: PanelType
    cap_sequence: List[str]
    total_error: float = Field(..., description="Excess ΔE*ab over the ideal path", ge=0.0)
    confusion_angle_degrees: float = Field(
        ..., description="Raw subject axis on the a*b* plane (bands use axis_offset_degrees)", ge=0.0, lt=180.0
    )
    classification: Classification
    severity: Severity
    path_length: float = Field(..., ge=0.0)
    ideal_path_length: float = Field(..., ge=0.0)
    confusion_index: float = Field(..., ge=0.0)
    baseline_angle_degrees: float = Field(..., ge=0.0, lt=180.0)
    axis_offset_degrees: float = Field(
        ..., description="Subject axis minus baseline axis; the classification bands apply to this", ge=0.0, lt=180.0
    )
    crossings: int = Field(..., ge=0)
    path_intersections: int = Field(..., ge=0)
    arrangement_score: int = Field(..., ge=0, le=100)
    pair_delta_es: List[float]
    dataset_version: str
    dataset_fingerprint: Optional[str] = None

    @classmethod
    def from_result(cls, result: Any, fingerprint: Optional[str] = None) -> "ScoreResultSchema":
        data: Dict[str, Any] = result.to_dict()
        data["dataset_fingerprint"] = fingerprint
        return cls(**data)
