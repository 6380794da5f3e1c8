import json
from pathlib import Path

import numpy as np
import pytest

from cvscreen.core.arrangement_scorer import ArrangementScorer
from cvscreen.core.cap_dataset import PANELS
from cvscreen.schemas.score_schemas import PanelType


def caps_for(panel_type: PanelType, numbers):
    """Cap ids from hue-step numbers, e.g. (PanelType.D15, [1, 15, 2]) → ['D15_01', 'D15_15', 'D15_02']"""
    return [f"{panel_type.value}_{n:02d}" for n in numbers]


# Typical dichromat arrangements (hue-step numbers, pilot and anchor implied)
PROTAN_PATTERN = [15, 1, 14, 2, 13, 3, 12, 4, 11, 5, 10, 6, 9, 7, 8]
DEUTAN_PATTERN = [1, 15, 2, 3, 14, 4, 13, 12, 5, 6, 11, 10, 7, 9, 8]
TRITAN_PATTERN = [1, 2, 3, 4, 5, 6, 7, 15, 8, 14, 9, 13, 10, 12, 11]


@pytest.fixture
def tmp_json(tmp_path: Path):
    def _make(data, name="sample.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path

    return _make


@pytest.fixture
def scorer():
    return ArrangementScorer()


@pytest.fixture
def d15_reference():
    return list(PANELS[PanelType.D15].reference_order)


@pytest.fixture
def ld15_reference():
    return list(PANELS[PanelType.LD15].reference_order)


@pytest.fixture
def rng():
    return np.random.default_rng(42)
