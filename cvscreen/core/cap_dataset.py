"""
Cap Dataset Module

Read-only reference tables for the Farnsworth D-15 (D15) and Lanthony
Desaturated D-15 (LD15) panels.

Each panel holds 17 caps: a fixed pilot, 15 movable hue caps in reference
(ideal) order, and a fixed anchor that repeats the last movable cap's Lab so
the path closes back toward the pilot without adding a 16th hue.
"""

import hashlib
import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from cvscreen.schemas.score_schemas import PanelType
from cvscreen.utils.color_space import Lab

logger = logging.getLogger(__name__)

# Bump whenever any constant below changes; stored scores carry this value.
DATASET_VERSION = "1.0.0"

MOVABLE_CAP_COUNT = 15

# Chroma factor applied to the published Lanthony coordinates (lightness unchanged)
LD15_SATURATION_FACTOR = 1.08


class CapDatasetError(Exception):
    """Base exception for cap dataset errors"""

    pass


class UnknownPanelError(CapDatasetError):
    """Panel type not present in the dataset"""

    pass


class DatasetVersionMismatch(CapDatasetError):
    """Stored score was produced by a different dataset version"""

    pass


@dataclass(frozen=True)
class HueCap:
    """
    Single hue cap.

    Attributes:
        cap_id: unique within its panel
        lab: (L*, a*, b*)
        is_fixed: True for the pilot and anchor caps
        panel_type: owning panel
    """

    cap_id: str
    lab: Lab
    is_fixed: bool
    panel_type: PanelType


@dataclass(frozen=True)
class Panel:
    """Ordered caps of one panel plus derived lookups"""

    panel_type: PanelType
    caps: Tuple[HueCap, ...]
    _index: Mapping[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_index", MappingProxyType({cap.cap_id: i for i, cap in enumerate(self.caps)}))

    @property
    def pilot(self) -> HueCap:
        return self.caps[0]

    @property
    def anchor(self) -> HueCap:
        return self.caps[-1]

    @property
    def fixed_caps(self) -> Tuple[HueCap, ...]:
        return tuple(cap for cap in self.caps if cap.is_fixed)

    @property
    def movable_caps(self) -> Tuple[HueCap, ...]:
        return tuple(cap for cap in self.caps if not cap.is_fixed)

    @property
    def reference_order(self) -> Tuple[str, ...]:
        """Movable cap ids in ideal order"""
        return tuple(cap.cap_id for cap in self.movable_caps)

    def get_cap(self, cap_id: str) -> HueCap:
        return self.caps[self._index[cap_id]]

    def has_cap(self, cap_id: str) -> bool:
        return cap_id in self._index

    def ideal_index(self, cap_id: str) -> int:
        """Position along the reference path (pilot=0, anchor=16)."""
        return self._index[cap_id]


def _cap(cap_id: str, lab: Lab, is_fixed: bool, panel_type: PanelType) -> HueCap:
    return HueCap(cap_id=cap_id, lab=tuple(float(v) for v in lab), is_fixed=is_fixed, panel_type=panel_type)


def _desaturate(lab: Lab, factor: float) -> Lab:
    L, a, b = lab
    return (L, round(a * factor, 2), round(b * factor, 2))


# Farnsworth D-15 (Illuminant C), approximate CIELAB from published xyY coordinates
_D15_LAB = (
    ("D15_PILOT", (51.0, -8.7, -25.9)),
    ("D15_01", (51.6, -9.6, -19.2)),
    ("D15_02", (52.0, -11.2, -13.5)),
    ("D15_03", (52.3, -12.1, -8.3)),
    ("D15_04", (52.5, -13.3, -2.3)),
    ("D15_05", (52.6, -14.5, 4.5)),
    ("D15_06", (52.4, -16.5, 14.0)),
    ("D15_07", (51.3, -15.9, 22.4)),
    ("D15_08", (49.5, -11.7, 28.0)),
    ("D15_09", (47.9, -5.7, 28.4)),
    ("D15_10", (46.2, 3.1, 26.0)),
    ("D15_11", (45.7, 9.2, 20.8)),
    ("D15_12", (46.0, 14.0, 14.8)),
    ("D15_13", (47.0, 16.8, 5.6)),
    ("D15_14", (48.0, 15.5, -4.1)),
    ("D15_15", (49.5, 11.0, -13.3)),
)

# Lanthony desaturated D-15, published coordinates before the chroma factor
_LD15_RAW_LAB = (
    ("LD15_PILOT", (78.8, -3.5, -10.4)),
    ("LD15_01", (79.0, -3.8, -7.7)),
    ("LD15_02", (79.2, -4.5, -5.4)),
    ("LD15_03", (79.3, -4.8, -3.3)),
    ("LD15_04", (79.4, -5.3, -0.9)),
    ("LD15_05", (79.4, -5.8, 1.8)),
    ("LD15_06", (79.3, -6.6, 5.6)),
    ("LD15_07", (78.9, -6.4, 9.0)),
    ("LD15_08", (78.2, -4.7, 11.2)),
    ("LD15_09", (77.5, -2.3, 11.4)),
    ("LD15_10", (76.9, 1.2, 10.4)),
    ("LD15_11", (76.7, 3.7, 8.3)),
    ("LD15_12", (76.8, 5.6, 5.9)),
    ("LD15_13", (77.1, 6.7, 2.2)),
    ("LD15_14", (77.5, 6.2, -1.6)),
    ("LD15_15", (78.2, 4.4, -5.3)),
)


def _build_caps(panel_type: PanelType, table, saturation: Optional[float] = None) -> Tuple[HueCap, ...]:
    caps = []
    for i, (cap_id, lab) in enumerate(table):
        if saturation is not None:
            lab = _desaturate(lab, saturation)
        caps.append(_cap(cap_id, lab, is_fixed=(i == 0), panel_type=panel_type))
    last = caps[-1]
    caps.append(_cap(f"{panel_type.value}_ANCHOR_END", last.lab, is_fixed=True, panel_type=panel_type))
    return tuple(caps)


def _validate_panel(panel: Panel) -> None:
    ids = [cap.cap_id for cap in panel.caps]
    if len(set(ids)) != len(ids):
        raise CapDatasetError(f"{panel.panel_type.value}: duplicate cap ids")
    if len(panel.fixed_caps) != 2 or not (panel.pilot.is_fixed and panel.anchor.is_fixed):
        raise CapDatasetError(f"{panel.panel_type.value}: expected pilot and anchor as the only fixed caps")
    if len(panel.movable_caps) != MOVABLE_CAP_COUNT:
        raise CapDatasetError(f"{panel.panel_type.value}: expected {MOVABLE_CAP_COUNT} movable caps")
    if panel.anchor.lab != panel.movable_caps[-1].lab:
        raise CapDatasetError(f"{panel.panel_type.value}: anchor must repeat the last movable cap")
    if any(cap.panel_type != panel.panel_type for cap in panel.caps):
        raise CapDatasetError(f"{panel.panel_type.value}: cap from another panel")


D15_CAPS: Tuple[HueCap, ...] = _build_caps(PanelType.D15, _D15_LAB)
LD15_CAPS: Tuple[HueCap, ...] = _build_caps(PanelType.LD15, _LD15_RAW_LAB, saturation=LD15_SATURATION_FACTOR)

_panels: Dict[PanelType, Panel] = {
    PanelType.D15: Panel(PanelType.D15, D15_CAPS),
    PanelType.LD15: Panel(PanelType.LD15, LD15_CAPS),
}
for _panel in _panels.values():
    _validate_panel(_panel)

PANELS: Mapping[PanelType, Panel] = MappingProxyType(_panels)


def get_panel(panel_type: Union[PanelType, str]) -> Panel:
    """
    Look up a panel by type.

    Args:
        panel_type: PanelType or its string value ("D15", "LD15")

    Raises:
        UnknownPanelError: unknown panel type
    """
    try:
        return PANELS[PanelType(panel_type)]
    except ValueError as e:
        raise UnknownPanelError(f"Unknown panel type: {panel_type!r}. Available: {[p.value for p in PANELS]}") from e


def dataset_fingerprint(panel_type: Optional[Union[PanelType, str]] = None) -> str:
    """
    SHA-256 over the cap constants (one panel, or all panels when omitted).

    Stored alongside scores so a historical result can be checked against the
    exact reference data that produced it.
    """
    panels = [get_panel(panel_type)] if panel_type is not None else list(PANELS.values())
    payload = {
        "version": DATASET_VERSION,
        "panels": {
            panel.panel_type.value: [[cap.cap_id, list(cap.lab), cap.is_fixed] for cap in panel.caps]
            for panel in panels
        },
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def verify_dataset_version(version: str, fingerprint: Optional[str] = None, panel_type=None) -> None:
    """
    Check that a stored score was produced by the current dataset.

    Raises:
        DatasetVersionMismatch: version or fingerprint differs
    """
    if version != DATASET_VERSION:
        raise DatasetVersionMismatch(f"Score produced by dataset {version}, current dataset is {DATASET_VERSION}")
    if fingerprint is not None and fingerprint != dataset_fingerprint(panel_type):
        raise DatasetVersionMismatch(f"Dataset fingerprint mismatch for version {version}")
    logger.debug(f"Dataset version {version} verified")
