from __future__ import annotations

import logging

from celery import shared_task

from ebrt_core.domain.errors import EbrtError

from .apps import get_claim_lease, get_spec_index, get_validator_client
from .submission import SubmissionCoordinator

logger = logging.getLogger(__name__)


@shared_task
def submit_simulation(record_id: str):
    coordinator = SubmissionCoordinator(get_spec_index(), get_validator_client(), lease=get_claim_lease())
    try:
        record = coordinator.submit(record_id)
    except EbrtError as exc:
        # Outcome is already persisted on the record by the coordinator.
        logger.warning("Queued submission of %s ended with %s: %s", record_id, type(exc).__name__, exc)
        return None
    return record.status
