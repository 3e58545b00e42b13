import json

import pytest

from conftest import make_input
from ebrt_core.domain.errors import InvalidScenario, MissingRequiredField
from ebrt_core.services.payload_builder import Scenario, build_payload, classify_cycle, to_flag


def test_standard_cycle_drops_traces_and_keeps_scenario_data(spec):
    payload = build_payload(spec, make_input(1, Driving_Cycle={"Time_s": [0, 1], "Speed_mps": [0, 1], "Altitude_m": [5, 6]}))
    cycle = payload["Driving_Cycle"]
    assert cycle["Time_s"] is None
    assert cycle["Speed_mps"] is None
    assert cycle["Altitude_m"] == 0
    assert payload["Scenario_data"] == {
        "VehicleLength": 12,
        "Return_Trip_Distance_km": 0,
        "Number_of_Buses_in_Fleet": 0,
        "Average_Velocity_of_Route_kph": 0,
    }


def test_standard_cycle_fills_missing_scenario_values(spec):
    payload = build_payload(spec, make_input(3, Scenario_data={"VehicleLength": None, "Number_of_Buses_in_Fleet": 4}))
    assert payload["Scenario_data"]["VehicleLength"] == 12
    assert payload["Scenario_data"]["Number_of_Buses_in_Fleet"] == 4


def test_city_cycle_removes_altitude_and_scenario_data(spec):
    payload = build_payload(spec, make_input(0, Scenario_data={"VehicleLength": 18}))
    assert "Altitude_m" not in payload["Driving_Cycle"]
    assert "Scenario_data" not in payload
    assert payload["Driving_Cycle"]["Cycle_Type"] == 0


def test_custom_cycle_with_mismatched_lengths_is_rejected(spec):
    data = make_input(6, Driving_Cycle={"Time_s": [0, 1, 2, 3, 4], "Speed_mps": [0, 1, 2, 3]})
    with pytest.raises(InvalidScenario) as excinfo:
        build_payload(spec, data)
    assert excinfo.value.rule == "custom_cycle_lengths"


def test_custom_cycle_with_one_array_is_rejected(spec):
    with pytest.raises(InvalidScenario) as excinfo:
        build_payload(spec, make_input(6, Driving_Cycle={"Time_s": [0, 1, 2]}))
    assert excinfo.value.rule == "custom_cycle_arrays"


def test_custom_cycle_keeps_traces_and_altitude(spec):
    series = list(range(10))
    data = make_input(6, Driving_Cycle={"Time_s": series, "Speed_mps": series, "Altitude_m": series})
    payload = build_payload(spec, data)
    cycle = payload["Driving_Cycle"]
    assert cycle["Time_s"] == series
    assert cycle["Speed_mps"] == series
    assert cycle["Altitude_m"] == series
    assert "Scenario_data" not in payload


@pytest.mark.parametrize("altitude", [None, "", []])
def test_custom_cycle_defaults_empty_altitude(spec, altitude):
    data = make_input(6, Driving_Cycle={"Time_s": [0, 1], "Speed_mps": [0, 1], "Altitude_m": altitude})
    assert build_payload(spec, data)["Driving_Cycle"]["Altitude_m"] == 0


@pytest.mark.parametrize("cycle_type", [7, -1, "abc", None, True, "--1", "\u00b2", ""])
def test_unknown_cycle_type_is_rejected(spec, cycle_type):
    with pytest.raises(InvalidScenario) as excinfo:
        build_payload(spec, make_input(cycle_type))
    assert excinfo.value.rule == "cycle_type"


def test_numeric_string_cycle_type_is_normalized(spec):
    payload = build_payload(spec, make_input("2"))
    assert payload["Driving_Cycle"]["Cycle_Type"] == 2
    assert classify_cycle(spec, 2.0) is Scenario.STANDARD


def test_eco_threshold_required_in_threshold_mode(spec):
    with pytest.raises(MissingRequiredField) as excinfo:
        build_payload(spec, make_input(1, Driving_Cycle={"ECO_Options": 2}))
    assert excinfo.value.field == "Driving_Cycle.ECO_Threshold"


def test_eco_threshold_kept_in_threshold_mode(spec):
    payload = build_payload(spec, make_input(1, Driving_Cycle={"ECO_Options": 2, "ECO_Threshold": 30}))
    assert payload["Driving_Cycle"]["ECO_Threshold"] == 30


@pytest.mark.parametrize("option", [0, 1])
def test_eco_threshold_cleared_outside_threshold_mode(spec, option):
    payload = build_payload(spec, make_input(1, Driving_Cycle={"ECO_Options": option, "ECO_Threshold": 30}))
    assert payload["Driving_Cycle"]["ECO_Threshold"] is None


def test_calculated_fields_never_reach_the_payload(spec):
    data = make_input(
        1,
        Vehicle_data={"FrontalArea_m2": 9.9, "frontal-area": 9.9},
        Charger_data={"Charging_Efficiency_pct": 80},
    )
    payload = build_payload(spec, data)
    assert "FrontalArea_m2" not in payload["Vehicle_data"]
    assert "Charging_Efficiency_pct" not in payload["Charger_data"]


@pytest.mark.parametrize(
    "value, expected",
    [(True, 1), (False, 0), ("true", 1), ("Yes", 1), ("on", 1), ("1", 1), ("no", 0), ("", 0), (1, 1), (0, 0), (None, 0)],
)
def test_to_flag(value, expected):
    assert to_flag(value) == expected


def test_charger_flags_are_integers(spec):
    payload = build_payload(spec, make_input(1, Charger_data={"opportunity-charging": "true"}))
    assert payload["Charger_data"]["Depot_Charging_Flag"] == 1
    assert payload["Charger_data"]["Opportunity_Charging_Flag"] == 1
    assert payload["Charger_data"]["Charger_Power_kW"] == 150


def test_initial_soc_defaults_to_maximum(spec):
    payload = build_payload(spec, make_input(1, Energy_Storage_data={"max-soc": 85}))
    assert payload["Energy_Storage_data"]["Initial_Battery_SoC_pct"] == 85


def test_supplied_initial_soc_is_kept(spec):
    payload = build_payload(spec, make_input(1, Energy_Storage_data={"Initial_Battery_SoC_pct": 60}))
    assert payload["Energy_Storage_data"]["Initial_Battery_SoC_pct"] == 60


def test_ui_keys_and_defaults_are_merged(spec):
    payload = build_payload(spec, make_input(1, Environment_data={"windspeed": 7}, Vehicle_data={"vehicle-mass": 15000}))
    assert payload["Environment_data"] == {"WindSpeed_ms": 7, "Humidity_pct": 50, "AvgTemp_C": 20, "CabinTempRef_C": 22}
    assert payload["Vehicle_data"]["VehicleMass_kg"] == 15000
    assert payload["Motor_data"] == {"Motor_Type": 1, "Motor_Power_kW": 150, "Motor_Efficiency_pct": 92}


def test_unknown_keys_are_not_carried(spec):
    payload = build_payload(spec, make_input(1, Vehicle_data={"Axle_Count": 3}, Telemetry={"a": 1}))
    assert "Axle_Count" not in payload["Vehicle_data"]
    assert "Telemetry" not in payload


def test_build_is_deterministic_and_leaves_inputs_alone(spec):
    series = [0, 1, 2]
    data = make_input(6, Driving_Cycle={"Time_s": series, "Speed_mps": series})
    first = build_payload(spec, data)
    second = build_payload(spec, data)
    assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)

    first["Driving_Cycle"]["Time_s"].append(3)
    assert series == [0, 1, 2]
    assert spec.template["Driving_Cycle"]["Time_s"] is None
