from __future__ import annotations

import copy
import enum
import logging
import math
from typing import Any, Callable, Dict, Mapping, Optional

from ebrt_core.domain.errors import InvalidScenario, MissingRequiredField
from ebrt_core.domain.models import SpecIndex
from ebrt_core.services.field_mapper import map_input_to_backend

logger = logging.getLogger(__name__)

DRIVING_CYCLE = "Driving_Cycle"
SCENARIO_DATA = "Scenario_data"
CHARGER_DATA = "Charger_data"
ENERGY_STORAGE_DATA = "Energy_Storage_data"

FLAG_SUFFIX = "_flag"
_TRUE_STRINGS = {"true", "yes", "on", "1"}


class Scenario(enum.Enum):
    STANDARD = "standard"
    CITY = "city"
    CUSTOM = "custom"


def is_flag_key(key: str) -> bool:
    return key.lower().endswith(FLAG_SUFFIX)


def to_flag(value: Any) -> int:
    if isinstance(value, str):
        return 1 if value.strip().lower() in _TRUE_STRINGS else 0
    return 1 if value else 0


def build_payload(spec: SpecIndex, input_data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Turn grouped caller input into the canonical validator payload.

    Steps, in order:
    - merge mapped input onto the template defaults (calculated keys dropped)
    - reshape Driving_Cycle for the Standard / City / Custom scenario
    - keep Scenario_data for Standard cycles only
    - gate ECO_Threshold on the threshold ECO option
    - coerce Charger_data flags to 1/0
    - default the initial battery SoC to the maximum SoC
    - drop any calculated key that is still present

    Pure: the result depends only on (spec, input_data) and shares no
    objects with either.
    """
    mapped = map_input_to_backend(spec, input_data or {})
    payload = _merge_defaults(spec, mapped)

    cycle = payload.get(DRIVING_CYCLE)
    if not isinstance(cycle, dict):
        raise InvalidScenario("cycle_type", f"{DRIVING_CYCLE} group is missing from the template")

    scenario = classify_cycle(spec, cycle.get("Cycle_Type"))
    cycle["Cycle_Type"] = _as_int(cycle["Cycle_Type"])
    _SCENARIO_RULES[scenario](cycle)
    _apply_scenario_visibility(spec, payload, scenario)
    _apply_eco_gating(spec, cycle)
    _normalize_charger_flags(payload)
    _default_initial_soc(payload, mapped)
    _scrub_calculated(spec, payload)

    logger.debug("Built %s payload for cycle type %s", scenario.value, cycle["Cycle_Type"])
    return payload


def classify_cycle(spec: SpecIndex, cycle_type: Any) -> Scenario:
    code = _as_int(cycle_type)
    if code is None:
        raise InvalidScenario("cycle_type", f"Cycle_Type must be an integer, got {cycle_type!r}")
    if code == spec.cycles.city:
        return Scenario.CITY
    if code == spec.cycles.custom:
        return Scenario.CUSTOM
    if code in spec.cycles.standard:
        return Scenario.STANDARD
    raise InvalidScenario("cycle_type", f"Unknown Cycle_Type {code}")


def _merge_defaults(spec: SpecIndex, mapped: Mapping[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for group, defaults in spec.template.items():
        supplied = mapped.get(group)
        if not isinstance(supplied, Mapping):
            supplied = {}

        out: Dict[str, Any] = {}
        for key, default in defaults.items():
            if spec.is_calculated(group, key):
                continue
            if key in supplied:
                value = supplied[key]
                out[key] = to_flag(value) if is_flag_key(key) else copy.deepcopy(value)
            else:
                out[key] = copy.deepcopy(default)
        payload[group] = out
    return payload


def _standard_cycle(cycle: Dict[str, Any]) -> None:
    # Standard cycles are looked up by the validator; speed traces never travel.
    cycle["Time_s"] = None
    cycle["Speed_mps"] = None
    cycle["Altitude_m"] = 0


def _city_cycle(cycle: Dict[str, Any]) -> None:
    cycle.pop("Altitude_m", None)


def _custom_cycle(cycle: Dict[str, Any]) -> None:
    time_s = cycle.get("Time_s")
    speed = cycle.get("Speed_mps")
    time_is_series = isinstance(time_s, (list, tuple))
    speed_is_series = isinstance(speed, (list, tuple))

    if time_is_series != speed_is_series:
        raise InvalidScenario(
            "custom_cycle_arrays",
            "Time_s and Speed_mps: both or neither must be arrays for a custom cycle",
        )
    if time_is_series and len(time_s) != len(speed):
        raise InvalidScenario(
            "custom_cycle_lengths",
            f"Time_s has {len(time_s)} samples but Speed_mps has {len(speed)}",
        )

    altitude = cycle.get("Altitude_m")
    if altitude is None or altitude == "" or altitude == []:
        cycle["Altitude_m"] = 0


_SCENARIO_RULES: Dict[Scenario, Callable[[Dict[str, Any]], None]] = {
    Scenario.STANDARD: _standard_cycle,
    Scenario.CITY: _city_cycle,
    Scenario.CUSTOM: _custom_cycle,
}


def _apply_scenario_visibility(spec: SpecIndex, payload: Dict[str, Any], scenario: Scenario) -> None:
    if scenario is not Scenario.STANDARD:
        payload.pop(SCENARIO_DATA, None)
        return

    section = payload.get(SCENARIO_DATA)
    if not isinstance(section, dict):
        section = {}
    vehicle_length = spec.template.get(SCENARIO_DATA, {}).get("VehicleLength")
    fallbacks = {
        "VehicleLength": vehicle_length if vehicle_length is not None else 0,
        "Return_Trip_Distance_km": 0,
        "Number_of_Buses_in_Fleet": 0,
        "Average_Velocity_of_Route_kph": 0,
    }
    for key, fallback in fallbacks.items():
        if section.get(key) is None:
            section[key] = copy.deepcopy(fallback)
    payload[SCENARIO_DATA] = section


def _apply_eco_gating(spec: SpecIndex, cycle: Dict[str, Any]) -> None:
    if _as_int(cycle.get("ECO_Options")) == spec.eco_threshold_code:
        if cycle.get("ECO_Threshold") is None:
            raise MissingRequiredField(
                f"{DRIVING_CYCLE}.ECO_Threshold",
                "ECO_Threshold is required when ECO_Options selects the threshold mode",
            )
    else:
        cycle["ECO_Threshold"] = None


def _normalize_charger_flags(payload: Dict[str, Any]) -> None:
    charger = payload.get(CHARGER_DATA)
    if not isinstance(charger, dict):
        return
    for key in charger:
        if is_flag_key(key):
            charger[key] = to_flag(charger[key])


def _default_initial_soc(payload: Dict[str, Any], mapped: Mapping[str, Any]) -> None:
    storage = payload.get(ENERGY_STORAGE_DATA)
    if not isinstance(storage, dict):
        return
    supplied = mapped.get(ENERGY_STORAGE_DATA)
    if isinstance(supplied, Mapping) and supplied.get("Initial_Battery_SoC_pct") is not None:
        return
    max_soc = storage.get("MaximumSoC_pct")
    if _is_number(max_soc):
        storage["Initial_Battery_SoC_pct"] = max_soc


def _scrub_calculated(spec: SpecIndex, payload: Dict[str, Any]) -> None:
    for descriptor in spec.fields:
        if not descriptor.calculated:
            continue
        section = payload.get(descriptor.group)
        if isinstance(section, dict):
            section.pop(descriptor.backend_key, None)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
