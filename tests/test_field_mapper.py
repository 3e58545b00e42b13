from ebrt_core.services.field_mapper import map_input_to_backend


def test_ui_keys_are_renamed_per_group(spec):
    mapped = map_input_to_backend(spec, {"Environment_data": {"windspeed": 4.5, "humidity": 60}})
    assert mapped["Environment_data"]["WindSpeed_ms"] == 4.5
    assert mapped["Environment_data"]["Humidity_pct"] == 60


def test_backend_shaped_keys_pass_through(spec):
    mapped = map_input_to_backend(spec, {"Vehicle_data": {"VehicleMass_kg": 15000, "Axle_Count": 3}})
    assert mapped["Vehicle_data"] == {"VehicleMass_kg": 15000, "Axle_Count": 3}


def test_rename_wins_over_passthrough(spec):
    mapped = map_input_to_backend(spec, {"Vehicle_data": {"vehicle-mass": 14000, "VehicleMass_kg": 9000}})
    assert mapped["Vehicle_data"]["VehicleMass_kg"] == 14000


def test_unknown_groups_and_scalars_pass_through(spec):
    data = {"Telemetry": {"a": 1}, "selections": "raw", "Driving_Cycle": {"driveCycleTypeId": 0}}
    mapped = map_input_to_backend(spec, data)
    assert mapped["Telemetry"] == {"a": 1}
    assert mapped["selections"] == "raw"
    assert mapped["Driving_Cycle"]["Cycle_Type"] == 0


def test_input_is_not_mutated(spec):
    data = {"Environment_data": {"windspeed": 1}}
    map_input_to_backend(spec, data)
    assert data == {"Environment_data": {"windspeed": 1}}
