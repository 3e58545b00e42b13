from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List

from rest_framework import serializers
from rest_framework.settings import api_settings

from ebrt_core.domain.errors import InputValidationError
from ebrt_core.services.field_mapper import map_input_to_backend
from ebrt_core.services.spec_index import DEFAULT_CYCLE_TYPES

from .models import SimulationRecord


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class StrictFloatField(serializers.FloatField):
    """FloatField that refuses numeric strings and booleans."""

    def to_internal_value(self, data):
        if not _is_number(data):
            self.fail("invalid")
        return super().to_internal_value(data)


class StrictIntegerField(serializers.IntegerField):
    def to_internal_value(self, data):
        if not _is_number(data) or (isinstance(data, float) and not data.is_integer()):
            self.fail("invalid")
        return super().to_internal_value(data)


class StrictCharField(serializers.CharField):
    def to_internal_value(self, data):
        if not isinstance(data, str):
            self.fail("invalid")
        return super().to_internal_value(data)


class ScalarOrSeriesField(serializers.Field):
    default_error_messages = {"invalid": "Must be a number or an array of numbers."}

    def to_internal_value(self, data):
        if _is_number(data):
            return data
        if isinstance(data, list) and all(_is_number(v) for v in data):
            return data
        self.fail("invalid")

    def to_representation(self, value):
        return value


def _series(**kwargs):
    return serializers.ListField(child=StrictFloatField(), **kwargs)


# ---------------------------------------------------------------------------
# Inbound request
# ---------------------------------------------------------------------------


class DrivingCycleSerializer(serializers.Serializer):
    Cycle_Type = StrictIntegerField()
    ECO_Options = StrictIntegerField(required=False)
    ECO_Threshold = StrictFloatField(required=False, allow_null=True)
    Time_s = _series(required=False, allow_null=True)
    Speed_mps = _series(required=False, allow_null=True)
    Altitude_m = ScalarOrSeriesField(required=False, allow_null=True)

    def validate_Cycle_Type(self, value):
        spec = self.context.get("spec_index")
        codes = spec.cycles.codes if spec is not None else {o.id for o in DEFAULT_CYCLE_TYPES}
        if value not in codes:
            raise serializers.ValidationError(f"Must be one of {sorted(codes)}.")
        return value


class ScenarioDataSerializer(serializers.Serializer):
    VehicleLength = StrictFloatField(required=False, allow_null=True)
    Return_Trip_Distance_km = StrictFloatField(required=False, allow_null=True)
    Number_of_Buses_in_Fleet = StrictFloatField(required=False, allow_null=True)
    Average_Velocity_of_Route_kph = StrictFloatField(required=False, allow_null=True)


class EnergyStorageSerializer(serializers.Serializer):
    MaximumSoC_pct = StrictFloatField(required=False, allow_null=True)
    Initial_Battery_SoC_pct = StrictFloatField(required=False, allow_null=True)


class InputDataSerializer(serializers.Serializer):
    """
    Structural check of inputData. Known fields are type-checked; every group
    stays an open bag, so unknown keys and unknown groups are accepted.
    Keys are resolved through the field map first, so UI-keyed and
    backend-keyed input validate the same way.
    """

    Driving_Cycle = DrivingCycleSerializer()
    Scenario_data = ScenarioDataSerializer(required=False)
    Energy_Storage_data = EnergyStorageSerializer(required=False)
    Charger_data = serializers.DictField(required=False)
    Motor_data = serializers.DictField(required=False)
    Battery_data = serializers.DictField(required=False)

    def to_internal_value(self, data):
        spec = self.context.get("spec_index")
        if spec is not None and isinstance(data, Mapping):
            data = map_input_to_backend(spec, data)
        return super().to_internal_value(data)


class SaveInputSerializer(serializers.Serializer):
    userId = StrictCharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    inputData = InputDataSerializer()


# ---------------------------------------------------------------------------
# External validator response
# ---------------------------------------------------------------------------


class TimeseriesSerializer(serializers.Serializer):
    time_s = _series()
    speed_ms = _series(required=False)
    rpm = _series(required=False)
    fuel_lph = _series(required=False)
    load_pct = _series(required=False)
    torque_pct = _series(required=False)


class MetricsSerializer(serializers.Serializer):
    fuel_rate_lph = StrictFloatField(required=False)
    fuel_pct = StrictFloatField(required=False)
    load_pct = StrictFloatField(required=False)
    torque_pct = StrictFloatField(required=False)
    dtc_count = StrictFloatField(required=False)
    coolant_c = StrictFloatField(required=False)
    intake_c = StrictFloatField(required=False)
    ambient_c = StrictFloatField(required=False)
    distance_km = StrictFloatField(required=False)
    speed_now = StrictFloatField(required=False)
    rpm_now = StrictFloatField(required=False)


class ValidatorResponseSerializer(serializers.Serializer):
    version = StrictCharField()
    computed_at = serializers.DateTimeField()
    timeseries = TimeseriesSerializer()
    metrics = MetricsSerializer()


def flatten_errors(detail: Any, prefix: str = "") -> List[Dict[str, str]]:
    """
    Turn DRF's nested error structure into one entry per violated path:
    [{"path": "inputData.Driving_Cycle.Cycle_Type", "message": "..."}].
    """
    errors: List[Dict[str, str]] = []
    if isinstance(detail, Mapping):
        for key, value in detail.items():
            if key == api_settings.NON_FIELD_ERRORS_KEY:
                path = prefix
            elif isinstance(key, int):
                path = f"{prefix}[{key}]"
            else:
                path = f"{prefix}.{key}" if prefix else str(key)
            errors.extend(flatten_errors(value, path))
    elif isinstance(detail, list):
        if all(not isinstance(item, (Mapping, list)) for item in detail):
            errors.extend({"path": prefix, "message": str(item)} for item in detail)
        else:
            for index, item in enumerate(detail):
                errors.extend(flatten_errors(item, f"{prefix}[{index}]"))
    else:
        errors.append({"path": prefix, "message": str(detail)})
    return errors


# ---------------------------------------------------------------------------
# Record summary
# ---------------------------------------------------------------------------


class SimulationRecordSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source="user_id", read_only=True)
    preparedPayload = serializers.JSONField(source="prepared_payload", read_only=True)
    validatedResponse = serializers.JSONField(source="validated_response", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    durationMs = serializers.IntegerField(source="duration_ms", read_only=True)

    class Meta:
        model = SimulationRecord
        fields = [
            "id",
            "userId",
            "status",
            "preparedPayload",
            "validatedResponse",
            "error",
            "attempts",
            "createdAt",
            "updatedAt",
            "durationMs",
        ]


def validate_save_input(data: Any, spec) -> Dict[str, Any]:
    serializer = SaveInputSerializer(data=data, context={"spec_index": spec})
    if not serializer.is_valid():
        raise InputValidationError(flatten_errors(serializer.errors))
    return serializer.validated_data
