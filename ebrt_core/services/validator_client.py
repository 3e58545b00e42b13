from __future__ import annotations

import dataclasses
import logging
import time
from typing import Any, Callable, Optional

import requests

from ebrt_core.domain.errors import UpstreamUnavailable
from ebrt_core.io.config import ValidatorConfig
from ebrt_core.services.signing import serialize_payload, sign_payload

logger = logging.getLogger(__name__)

# 408/429 are transient on the validator side; every other 4xx is final.
RETRYABLE_CLIENT_ERRORS = {408, 429}


@dataclasses.dataclass
class ValidatorReply:
    status_code: int
    body: Any
    attempts: int


def is_retryable(status_code: int) -> bool:
    return status_code >= 500 or status_code in RETRYABLE_CLIENT_ERRORS


class ValidatorClient:
    """
    POSTs a prepared payload to the external validator.

    The body is serialized once; the same bytes are signed and sent on every
    attempt, with the same Idempotency-Key, so the validator can collapse
    retries into one effect.
    """

    def __init__(
        self,
        config: ValidatorConfig,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock

    def build_headers(self, body: bytes, idempotency_key: str) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Idempotency-Key": idempotency_key,
            "User-Agent": self.config.user_agent,
        }
        signature = sign_payload(body, self.config.shared_secret)
        if signature:
            headers["X-Signature"] = signature
        return headers

    def submit(self, payload: Any, idempotency_key: str) -> ValidatorReply:
        body = serialize_payload(payload)
        headers = self.build_headers(body, idempotency_key)
        started = self._clock()

        reason = "no attempt made"
        status_code: Optional[int] = None
        reply_body: Any = None
        attempt = 0
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                resp = self.session.post(self.config.url, data=body, headers=headers, timeout=self.config.timeout)
            except requests.RequestException as exc:
                reason = f"Validator unreachable: {type(exc).__name__}: {exc}"
                status_code, reply_body = None, None
            else:
                if 200 <= resp.status_code < 300:
                    return ValidatorReply(resp.status_code, _decode(resp), attempt)
                status_code, reply_body = resp.status_code, _decode(resp)
                reason = f"Validator responded with HTTP {resp.status_code}"
                if not is_retryable(resp.status_code):
                    raise UpstreamUnavailable(reason, status_code, reply_body, attempt)

            if attempt == self.config.max_attempts:
                break
            delay = self.config.backoff * (2 ** (attempt - 1))
            if self.config.deadline is not None and self._clock() - started + delay > self.config.deadline:
                logger.warning("Validator deadline of %.1fs reached after %d attempt(s)", self.config.deadline, attempt)
                break
            logger.warning(
                "Validator attempt %d/%d failed (%s); retrying in %.2fs",
                attempt,
                self.config.max_attempts,
                reason,
                delay,
            )
            self._sleep(delay)

        raise UpstreamUnavailable(f"{reason} after {attempt} attempt(s)", status_code, reply_body, attempt)


def _decode(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text
