from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Any, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from ebrt_core.domain.errors import NotFound, SubmissionInProgress, UpstreamResponseInvalid, UpstreamUnavailable
from ebrt_core.domain.models import SpecIndex
from ebrt_core.services.payload_builder import build_payload
from ebrt_core.services.signing import idempotency_key
from ebrt_core.services.validator_client import ValidatorClient, ValidatorReply

from . import storage
from .models import SimulationRecord
from .serializers import ValidatorResponseSerializer, flatten_errors

logger = logging.getLogger(__name__)

# States a record may be claimed from; processing is owned by exactly one caller.
SUBMITTABLE = (SimulationRecord.STATUS_PENDING, SimulationRecord.STATUS_FAILED)


class SubmissionCoordinator:
    """
    Drives one record through pending/failed -> processing -> completed|failed.

    Every upstream outcome is written to the record before it is raised to
    the caller, so the stored record is always the source of truth.
    """

    def __init__(self, spec: SpecIndex, client: ValidatorClient, lease: Optional[float] = None):
        self.spec = spec
        self.client = client
        # Seconds a processing claim is honoured; None never expires it.
        self.lease = lease

    def submit(self, record_id: Any) -> SimulationRecord:
        """
        Send the record's prepared payload to the validator and persist the outcome.

        pending and failed records are claimed and sent. A processing record
        raises SubmissionInProgress unless its claim is older than the lease,
        in which case the previous owner is presumed dead and the claim is
        taken over. A completed record is not sent again: it is returned
        unchanged, so a repeated call cannot overwrite a stored response.
        """
        record, claimed = self._claim(record_id)
        if not claimed:
            logger.info("Simulation %s already completed; nothing to submit", record.pk)
            return record

        attempts = 0
        try:
            payload = self._resolve_payload(record)
            reply = self.client.submit(payload, idempotency_key(record.pk))
            attempts = reply.attempts
            self._validate_reply(reply)
        except UpstreamUnavailable as exc:
            self._fail(record, str(exc), exc.attempts)
            raise
        except Exception as exc:  # noqa: BLE001 - a claimed record must always reach a terminal state
            self._fail(record, str(exc) or type(exc).__name__, attempts)
            raise

        self._complete(record, reply)
        return record

    def _claim(self, record_id: Any):
        try:
            pk = uuid.UUID(str(record_id))
        except ValueError as exc:
            raise NotFound(f"Simulation with id {record_id} not found") from exc

        now = timezone.now()
        claimable = Q(status__in=SUBMITTABLE)
        if self.lease is not None:
            claimable |= Q(status=SimulationRecord.STATUS_PROCESSING, updated_at__lt=now - timedelta(seconds=self.lease))

        # Compare-and-swap: only one caller can move the record into processing.
        claimed = SimulationRecord.objects.filter(claimable, pk=pk).update(
            status=SimulationRecord.STATUS_PROCESSING,
            error=None,
            updated_at=now,
        )
        try:
            record = SimulationRecord.objects.get(pk=pk)
        except SimulationRecord.DoesNotExist as exc:
            raise NotFound(f"Simulation with id {record_id} not found") from exc

        if claimed:
            logger.info("Simulation %s -> processing", record.pk)
            return record, True
        if record.status == SimulationRecord.STATUS_PROCESSING:
            raise SubmissionInProgress(f"Simulation {record.pk} is already being submitted")
        return record, False

    def _resolve_payload(self, record: SimulationRecord):
        if record.prepared_payload is not None:
            return record.prepared_payload
        # Records saved before their payload was prepared are built here once.
        record.prepared_payload = build_payload(self.spec, record.input_data)
        record.save(update_fields=["prepared_payload", "updated_at"])
        return record.prepared_payload

    def _validate_reply(self, reply: ValidatorReply) -> None:
        serializer = ValidatorResponseSerializer(data=reply.body)
        if not serializer.is_valid():
            raise UpstreamResponseInvalid(flatten_errors(serializer.errors))

    def _fail(self, record: SimulationRecord, message: str, attempts: Optional[int]) -> None:
        with transaction.atomic():
            record.status = SimulationRecord.STATUS_FAILED
            record.error = message
            record.attempts = attempts or 0
            record.save(update_fields=["status", "error", "attempts", "updated_at"])
        logger.warning("Simulation %s -> failed: %s", record.pk, message)

    def _complete(self, record: SimulationRecord, reply: ValidatorReply) -> None:
        with transaction.atomic():
            record.validated_response = reply.body
            record.status = SimulationRecord.STATUS_COMPLETED
            record.error = None
            record.attempts = reply.attempts
            record.save(update_fields=["validated_response", "status", "error", "attempts", "updated_at"])
        logger.info("Simulation %s -> completed after %d attempt(s)", record.pk, reply.attempts)
        storage.write_json("results", record.pk, reply.body)
