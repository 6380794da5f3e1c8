"""
Color Space Conversion Utilities

sRGB (0~255) ↔ CIE XYZ (D65, Y=100) ↔ CIE L*a*b* conversion functions,
plus the a*b* plane principal-axis helper used for confusion-axis analysis.
"""

import math
from typing import Sequence, Tuple

import numpy as np

Lab = Tuple[float, float, float]
Xyz = Tuple[float, float, float]
Rgb = Tuple[int, int, int]

# D65 reference white (Y normalized to 100)
D65_WHITE: Xyz = (95.047, 100.0, 108.883)

SRGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ]
)

XYZ_TO_SRGB = np.array(
    [
        [3.2404542, -1.5371385, -0.4985314],
        [-0.9692660, 1.8760108, 0.0415560],
        [0.0556434, -0.2040259, 1.0572252],
    ]
)

_DELTA = 6.0 / 29.0


def _srgb_channel_to_linear(c: float) -> float:
    if c <= 0.04045:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def _linear_to_srgb_channel(c: float) -> float:
    if c <= 0.0031308:
        return 12.92 * c
    return 1.055 * c ** (1.0 / 2.4) - 0.055


def _f_lab(t: float) -> float:
    if t > _DELTA**3:
        return float(np.cbrt(t))
    return t / (3.0 * _DELTA**2) + 4.0 / 29.0


def _f_lab_inverse(t: float) -> float:
    if t > _DELTA:
        return t**3
    return 3.0 * _DELTA**2 * (t - 4.0 / 29.0)


def srgb_to_xyz(rgb: Sequence[float]) -> Xyz:
    """
    Convert device sRGB (0~255 per channel) to CIE XYZ.

    Channels are gamma-decoded with the piecewise sRGB transfer function and
    multiplied through the D65 sRGB→XYZ matrix.

    Args:
        rgb: (R, G, B) in 0~255

    Returns:
        (X, Y, Z) scaled so that reference white has Y=100

    Example:
        >>> X, Y, Z = srgb_to_xyz((255, 255, 255))
        >>> print(f"{X:.2f} {Y:.2f} {Z:.2f}")
        95.05 100.00 108.88
    """
    linear = np.array([_srgb_channel_to_linear(float(v) / 255.0) for v in rgb])
    x, y, z = SRGB_TO_XYZ @ linear * 100.0
    return float(x), float(y), float(z)


def xyz_to_srgb(xyz: Sequence[float]) -> Rgb:
    """
    Convert CIE XYZ (Y=100 scale) to device sRGB (0~255).

    Out-of-gamut values are clamped to [0, 1] per channel before scaling,
    so the conversion saturates instead of failing.

    Args:
        xyz: (X, Y, Z)

    Returns:
        (R, G, B) integers in 0~255
    """
    linear = XYZ_TO_SRGB @ (np.asarray(xyz, dtype=float) / 100.0)
    channels = []
    for c in linear:
        encoded = float(np.clip(_linear_to_srgb_channel(float(c)), 0.0, 1.0))
        channels.append(int(round(encoded * 255)))
    return channels[0], channels[1], channels[2]


def xyz_to_lab(xyz: Sequence[float]) -> Lab:
    """
    Convert CIE XYZ to CIE L*a*b* (D65 reference white).

    Example:
        >>> xyz_to_lab((95.047, 100.0, 108.883))
        (100.0, 0.0, 0.0)
    """
    Xn, Yn, Zn = D65_WHITE
    X, Y, Z = (float(v) for v in xyz)

    fx = _f_lab(X / Xn)
    fy = _f_lab(Y / Yn)
    fz = _f_lab(Z / Zn)

    L = 116.0 * fy - 16.0
    a = 500.0 * (fx - fy)
    b = 200.0 * (fy - fz)
    return L, a, b


def lab_to_xyz(lab: Sequence[float]) -> Xyz:
    """
    Convert CIE L*a*b* (D65) back to CIE XYZ.

    Exact algebraic inverse of xyz_to_lab().
    """
    Xn, Yn, Zn = D65_WHITE
    L, a, b = (float(v) for v in lab)

    fy = (L + 16.0) / 116.0
    fx = fy + a / 500.0
    fz = fy - b / 200.0

    return Xn * _f_lab_inverse(fx), Yn * _f_lab_inverse(fy), Zn * _f_lab_inverse(fz)


def srgb_to_lab(rgb: Sequence[float]) -> Lab:
    return xyz_to_lab(srgb_to_xyz(rgb))


def lab_to_srgb(lab: Sequence[float]) -> Rgb:
    return xyz_to_srgb(lab_to_xyz(lab))


def rgb_to_hex(rgb: Sequence[float]) -> str:
    """
    Format an RGB triple as ``#rrggbb``. Channels are rounded and clamped to 0~255.

    Example:
        >>> rgb_to_hex((255, 128, 0))
        '#ff8000'
    """
    return "#" + "".join(f"{int(np.clip(round(float(c)), 0, 255)):02x}" for c in rgb)


def lab_to_hex(lab: Sequence[float]) -> str:
    """Display swatch color for a Lab triple."""
    return rgb_to_hex(lab_to_srgb(lab))


def confusion_axis_angle(labs: Sequence[Sequence[float]]) -> float:
    """
    Dominant axis of a point set on the a*b* plane (L* ignored).

    Closed-form 2x2 principal component analysis on the mean-centered
    second-moment matrix [[Sxx, Sxy], [Sxy, Syy]]:

        theta = 0.5 * atan2(2*Sxy, Sxx - Syy)

    The axis is undirected, so the result is normalized to [0, 180).

    Args:
        labs: sequence of (L*, a*, b*) points

    Returns:
        Axis angle in degrees, 0 <= angle < 180. Fewer than 2 points
        returns 0.0 by convention.
    """
    if len(labs) < 2:
        return 0.0

    points = np.asarray(labs, dtype=float)
    a = points[:, 1] - points[:, 1].mean()
    b = points[:, 2] - points[:, 2].mean()

    n = len(points)
    s_xx = float(np.dot(a, a)) / n
    s_yy = float(np.dot(b, b)) / n
    s_xy = float(np.dot(a, b)) / n

    theta = 0.5 * math.atan2(2.0 * s_xy, s_xx - s_yy)
    degrees = math.degrees(theta) % 180.0
    if degrees >= 180.0:
        # float modulo can land exactly on the upper bound for tiny negatives
        degrees = 0.0
    return degrees
