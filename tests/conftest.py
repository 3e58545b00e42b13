import copy
import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from ebrt_core.io.spec import load_spec_index

SPEC_PATH = Path(__file__).resolve().parent.parent / "json" / "driveCycleOption.json"


def make_input(cycle_type: int = 1, **groups) -> dict:
    """Grouped inputData with a driving cycle; extra groups/keys merge on top."""
    data = {"Driving_Cycle": {"Cycle_Type": cycle_type}}
    for group, values in groups.items():
        data.setdefault(group, {}).update(values)
    return data


def make_reply(status_code: int, body) -> Mock:
    resp = Mock()
    resp.status_code = status_code
    if isinstance(body, (dict, list)):
        resp.json.return_value = copy.deepcopy(body)
    else:
        resp.json.side_effect = ValueError("not JSON")
    resp.text = body if isinstance(body, str) else json.dumps(body)
    return resp


VALID_RESPONSE = {
    "version": "1.0.0",
    "computed_at": "2024-05-01T12:00:00.000Z",
    "timeseries": {
        "time_s": [0, 1, 2, 3],
        "speed_ms": [0.0, 2.5, 5.0, 7.5],
        "rpm": [800, 900, 1000, 1100],
    },
    "metrics": {"fuel_rate_lph": 2.3, "dtc_count": 0, "distance_km": 0.1},
}


@pytest.fixture(scope="session")
def spec_document() -> dict:
    return json.loads(SPEC_PATH.read_text())


@pytest.fixture(scope="session")
def spec():
    return load_spec_index(SPEC_PATH)


@pytest.fixture
def valid_response() -> dict:
    return copy.deepcopy(VALID_RESPONSE)
