from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ebrt_core import __version__

DEFAULT_VALIDATOR_URL = "http://localhost:5001/validate"


@dataclasses.dataclass(frozen=True)
class ValidatorConfig:
    url: str = DEFAULT_VALIDATOR_URL
    shared_secret: Optional[str] = None
    timeout: float = 15.0
    max_attempts: int = 3
    backoff: float = 0.5
    deadline: Optional[float] = None  # seconds across all attempts, None = unbounded
    lease: Optional[float] = None  # seconds a processing claim is honoured, None = derived
    user_agent: str = f"ebrt-gateway/{__version__}"

    @property
    def signed(self) -> bool:
        return bool(self.shared_secret)

    @property
    def min_lease(self) -> float:
        """Longest a healthy submission can hold its claim: every timeout plus every backoff sleep."""
        sleeps = sum(self.backoff * (2 ** (attempt - 1)) for attempt in range(1, self.max_attempts))
        return self.timeout * self.max_attempts + sleeps

    @property
    def claim_lease(self) -> float:
        return self.lease if self.lease is not None else self.min_lease


def load_validator_config(values: Mapping[str, Any]) -> ValidatorConfig:
    """
    Build the outbound call settings from an environment-style mapping
    (os.environ or the EBRT_* names in Django settings).
    """
    deadline = values.get("EBRT_VALIDATOR_DEADLINE")
    lease = values.get("EBRT_VALIDATOR_LEASE")
    config = ValidatorConfig(
        url=str(values.get("EBRT_VALIDATOR_URL") or DEFAULT_VALIDATOR_URL),
        shared_secret=values.get("EBRT_SHARED_SECRET") or None,
        timeout=float(values.get("EBRT_VALIDATOR_TIMEOUT", 15.0)),
        max_attempts=int(values.get("EBRT_VALIDATOR_MAX_ATTEMPTS", 3)),
        backoff=float(values.get("EBRT_VALIDATOR_BACKOFF", 0.5)),
        deadline=float(deadline) if deadline not in (None, "") else None,
        lease=float(lease) if lease not in (None, "") else None,
    )
    if config.timeout <= 0:
        raise ValueError("EBRT_VALIDATOR_TIMEOUT must be positive")
    if config.max_attempts < 1:
        raise ValueError("EBRT_VALIDATOR_MAX_ATTEMPTS must be at least 1")
    if config.backoff < 0:
        raise ValueError("EBRT_VALIDATOR_BACKOFF must not be negative")
    if config.lease is not None and config.lease < config.min_lease:
        raise ValueError(f"EBRT_VALIDATOR_LEASE must be at least {config.min_lease:g} seconds")
    return config


def load_input_data(path: str | Path) -> Dict[str, Any]:
    """Accepts either a bare inputData object or a {userId, inputData} envelope."""
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    if isinstance(data.get("inputData"), dict):
        return data["inputData"]
    return data


def _read_json(path: str | Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
