from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from django.conf import settings

logger = logging.getLogger(__name__)


def write_json(folder: str, record_id: Any, payload: Any) -> Optional[Path]:
    """Best-effort copy of a record artifact under MEDIA_ROOT; never raises on I/O errors."""
    path = Path(settings.MEDIA_ROOT) / folder / f"{record_id}.json"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, default=str))
    except OSError:
        logger.exception("Failed to write %s", path)
        return None
    return path
