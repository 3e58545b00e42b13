from __future__ import annotations

import json
import logging
from pathlib import Path

from ebrt_core.domain.errors import MalformedSpec
from ebrt_core.domain.models import SpecIndex
from ebrt_core.services.spec_index import parse

logger = logging.getLogger(__name__)


def load_spec_index(path: str | Path) -> SpecIndex:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise MalformedSpec(f"Cannot read specification document {path}: {exc}") from exc

    spec = parse(document)
    logger.info(
        "Loaded specification %s: %d groups, %d mapped fields, %d calculated",
        path,
        len(spec.template),
        len(spec.fields),
        len(spec.calculated),
    )
    return spec
