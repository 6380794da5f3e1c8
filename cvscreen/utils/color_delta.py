"""
Color Delta E Calculation Module

CIE 1976 color difference (ΔE*ab), the perceptual-distance primitive every
arrangement score is built from.

References:
- CIE Publication 15:2004, Colorimetry, 3rd edition.
"""

from typing import Sequence, Tuple, Union

import numpy as np

LabLike = Union[Tuple[float, float, float], Sequence[float], np.ndarray]


def _unpack(lab: LabLike) -> Tuple[float, float, float]:
    if isinstance(lab, (tuple, list)):
        L, a, b = lab
    else:
        L, a, b = lab[0], lab[1], lab[2]
    return float(L), float(a), float(b)


def delta_e_cie1976(lab1: LabLike, lab2: LabLike) -> float:
    """
    CIE 1976 color difference (ΔE*ab).

    Euclidean distance in L*a*b* space. Symmetric, and zero for identical colors.

    Args:
        lab1: first color (L*, a*, b*)
        lab2: second color (L*, a*, b*)

    Returns:
        ΔE*ab (float)

    Examples:
        >>> round(delta_e_cie1976((50, 2.5, -10), (55, 3.5, -9)), 3)
        5.196
    """
    L1, a1, b1 = _unpack(lab1)
    L2, a2, b2 = _unpack(lab2)

    delta_E = np.sqrt((L2 - L1) ** 2 + (a2 - a1) ** 2 + (b2 - b1) ** 2)

    return float(delta_E)


def path_delta_es(labs: Sequence[LabLike]) -> list:
    """ΔE*ab between each consecutive pair of a path of Lab points."""
    return [delta_e_cie1976(labs[i], labs[i + 1]) for i in range(len(labs) - 1)]


# Convenience aliases
delta_e = delta_e_cie1976
