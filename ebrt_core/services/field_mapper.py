from __future__ import annotations

from typing import Any, Dict, Mapping

from ebrt_core.domain.models import SpecIndex


def map_input_to_backend(spec: SpecIndex, grouped_input: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Rename UI keys to backend keys, group by group.

    Every caller-supplied key is copied through first and the renames are
    applied on top, so callers that already send backend-shaped keys (or
    fields newer than the document) keep them. Unknown groups and
    non-object group values pass through untouched. Nothing is validated here.
    """
    mapped: Dict[str, Any] = {}
    for group, values in grouped_input.items():
        if not isinstance(values, Mapping):
            mapped[group] = values
            continue

        out = dict(values)
        for ui_key, backend_key in spec.field_map.get(group, {}).items():
            if ui_key in values:
                out[backend_key] = values[ui_key]
        mapped[group] = out
    return mapped
