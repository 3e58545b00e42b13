import uuid

from django.conf import settings
from django.db import DatabaseError, connection
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from ebrt_core import __version__
from ebrt_core.domain.errors import (
    InputValidationError,
    InvalidScenario,
    MissingRequiredField,
    NotFound,
    SubmissionInProgress,
    UpstreamResponseInvalid,
    UpstreamUnavailable,
)
from ebrt_core.services.payload_builder import build_payload

from . import storage
from .apps import get_claim_lease, get_spec_index, get_validator_client
from .models import SimulationRecord
from .serializers import SimulationRecordSerializer, validate_save_input
from .submission import SubmissionCoordinator
from .tasks import submit_simulation


def _rules_error(exc):
    if isinstance(exc, MissingRequiredField):
        body = {"error": "Missing required field", "field": exc.field, "message": str(exc)}
    else:
        body = {"error": "Invalid scenario", "rule": exc.rule, "message": str(exc)}
    return Response(body, status=status.HTTP_422_UNPROCESSABLE_ENTITY)


def _not_found(record_id):
    return Response(
        {"error": "Record not found", "message": f"Simulation with id {record_id} not found"},
        status=status.HTTP_404_NOT_FOUND,
    )


def _get_record(record_id):
    try:
        return SimulationRecord.objects.get(pk=uuid.UUID(str(record_id)))
    except (ValueError, SimulationRecord.DoesNotExist):
        return None


class SaveInputView(APIView):
    def post(self, request):
        spec = get_spec_index()
        try:
            validated = validate_save_input(request.data, spec)
        except InputValidationError as exc:
            return Response(
                {"error": "Invalid input data", "errors": exc.errors},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )

        # The raw input is stored untouched; only the prepared payload is normalized.
        input_data = request.data["inputData"]
        try:
            payload = build_payload(spec, input_data)
        except (InvalidScenario, MissingRequiredField) as exc:
            return _rules_error(exc)

        user_id = validated.get("userId") or None
        record = SimulationRecord.objects.create(
            user_id=user_id,
            input_data=input_data,
            prepared_payload=payload,
            status=SimulationRecord.STATUS_PENDING,
        )
        storage.write_json(
            "inputs",
            record.pk,
            {"userId": user_id, "inputData": input_data, "timestamp": record.created_at, "version": __version__},
        )
        return Response(
            {"id": str(record.pk), "status": record.status, "timestamp": record.created_at},
            status=status.HTTP_201_CREATED,
        )


class SendToValidatorView(APIView):
    def post(self, request):
        record_id = request.data.get("id") if hasattr(request.data, "get") else None
        if not record_id:
            return Response(
                {"error": "Missing required field", "message": "id is required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if request.data.get("async"):
            record = _get_record(record_id)
            if record is None:
                return _not_found(record_id)
            submit_simulation.delay(str(record.pk))
            return Response(
                {"id": str(record.pk), "status": record.status, "timestamp": record.updated_at},
                status=status.HTTP_202_ACCEPTED,
            )

        coordinator = SubmissionCoordinator(get_spec_index(), get_validator_client(), lease=get_claim_lease())
        try:
            record = coordinator.submit(record_id)
        except NotFound:
            return _not_found(record_id)
        except SubmissionInProgress as exc:
            return Response({"error": "Submission in progress", "message": str(exc)}, status=status.HTTP_409_CONFLICT)
        except (InvalidScenario, MissingRequiredField) as exc:
            return _rules_error(exc)
        except UpstreamResponseInvalid as exc:
            return Response(
                {"error": "Invalid validator response", "errors": exc.errors},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )
        except UpstreamUnavailable as exc:
            if exc.status_code and exc.status_code >= 400 and exc.body is not None:
                return Response(exc.body, status=exc.status_code)
            return Response({"error": "Bad Gateway", "message": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({"id": str(record.pk), "status": record.status, "timestamp": record.updated_at})


class ResultsView(APIView):
    def get(self, request, pk: str):
        record = _get_record(pk)
        if record is None:
            return _not_found(pk)
        return Response(SimulationRecordSerializer(record).data)


class HealthView(APIView):
    def get(self, request):
        try:
            connection.ensure_connection()
            database = "connected"
        except DatabaseError:
            database = "disconnected"

        spec = get_spec_index()
        return Response(
            {
                "status": "ok",
                "timestamp": timezone.now(),
                "environment": settings.EBRT_ENV,
                "database": database,
                "spec": {"groups": len(spec.template), "calculated": len(spec.calculated)},
            }
        )


class SpecEnumsView(APIView):
    def get(self, request):
        spec = get_spec_index()
        return Response(
            {name: [{"id": o.id, "name": o.name} for o in options] for name, options in spec.enums.items()}
        )
