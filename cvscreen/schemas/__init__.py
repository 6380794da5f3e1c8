"""
Schemas Package

Enumerations and pydantic models shared by the scorer, the config layer and
reporting collaborators.
"""

from .score_schemas import Classification, PanelType, ScoreRequest, ScoreResultSchema, ScoringCriteria, Severity

__all__ = [
    "PanelType",
    "Classification",
    "Severity",
    "ScoringCriteria",
    "ScoreRequest",
    "ScoreResultSchema",
]
