"""
Core Algorithm Modules

Contains the main algorithmic components for color-vision arrangement screening:
- cap_dataset: D15 / LD15 reference caps (read-only, versioned)
- ArrangementScorer: total error, confusion axis, classification and severity
- TestSession: shuffled presentation, cap moves and submission
"""

from .arrangement_scorer import ArrangementScorer, InvalidSequence, ScoreResult
from .session_controller import TestSession

__all__ = [
    "ArrangementScorer",
    "ScoreResult",
    "InvalidSequence",
    "TestSession",
]
