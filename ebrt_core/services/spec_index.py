from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from ebrt_core.domain.errors import MalformedSpec
from ebrt_core.domain.models import CycleCatalogue, EnumOption, FieldDescriptor, SpecIndex

CITY_CYCLE = 0
DEFAULT_CYCLE_TYPES = (
    EnumOption(0, "City_Specific"),
    EnumOption(1, "WLTC"),
    EnumOption(2, "NEDC"),
    EnumOption(3, "SORT"),
    EnumOption(4, "VECTO"),
    EnumOption(5, "FTP"),
    EnumOption(6, "Custom"),
)
DEFAULT_ECO_THRESHOLD = 2


def parse(document: Mapping[str, Any]) -> SpecIndex:
    """
    Build the lookup structures the mapper and the rules engine need:
    - template defaults per group (read-only)
    - UI key -> backend key per group
    - the set of "group.backendKey" fields that are calculated/show-only
    - the cycle type catalogue and the ECO threshold option code
    """
    if not isinstance(document, Mapping):
        raise MalformedSpec("Specification document must be an object")

    template = document["template"] if "template" in document else document.get("backend_payload_template")
    if not isinstance(template, Mapping):
        raise MalformedSpec("Specification template is missing or not an object")

    frozen_template: Dict[str, Mapping[str, Any]] = {}
    for group, defaults in template.items():
        if not isinstance(defaults, Mapping):
            raise MalformedSpec(f"Template group {group!r} must be an object")
        frozen_template[group] = MappingProxyType(dict(defaults))

    fields = _parse_ui_schema(document.get("ui_schema") or {})
    field_map: Dict[str, Dict[str, str]] = {}
    for descriptor in fields:
        field_map.setdefault(descriptor.group, {})[descriptor.key] = descriptor.backend_key

    enums = _parse_enums(document.get("enums") or {})

    return SpecIndex(
        template=MappingProxyType(frozen_template),
        field_map=MappingProxyType({g: MappingProxyType(m) for g, m in field_map.items()}),
        calculated=frozenset(d.qualified for d in fields if d.calculated),
        fields=tuple(fields),
        enums=MappingProxyType(enums),
        cycles=_cycle_catalogue(enums.get("cycle_types") or DEFAULT_CYCLE_TYPES),
        eco_threshold_code=_eco_threshold_code(enums.get("eco_options") or ()),
    )


def _parse_ui_schema(ui_schema: Any) -> List[FieldDescriptor]:
    if not isinstance(ui_schema, Mapping):
        raise MalformedSpec("ui_schema must be an object")

    descriptors: List[FieldDescriptor] = []
    for group, entries in ui_schema.items():
        # Both {"Group": [...]} and {"Group": {"fields": [...]}} are in use.
        if isinstance(entries, Mapping):
            entries = entries.get("fields") or []
        if not isinstance(entries, list):
            raise MalformedSpec(f"ui_schema group {group!r} must list its fields")
        for entry in entries:
            if not isinstance(entry, Mapping) or not entry.get("key"):
                raise MalformedSpec(f"ui_schema group {group!r} has a field without a key")
            descriptors.append(
                FieldDescriptor(
                    group=group,
                    key=str(entry["key"]),
                    backend_key=str(entry.get("backend_key") or entry["key"]),
                    type=str(entry.get("type", "number")),
                    show_only=bool(entry.get("show_only", False)),
                )
            )
    return descriptors


def _parse_enums(raw: Any) -> Dict[str, Tuple[EnumOption, ...]]:
    if not isinstance(raw, Mapping):
        raise MalformedSpec("enums must be an object")

    enums: Dict[str, Tuple[EnumOption, ...]] = {}
    for name, options in raw.items():
        if not isinstance(options, list):
            raise MalformedSpec(f"enum {name!r} must be a list")
        parsed = []
        for option in options:
            try:
                parsed.append(EnumOption(id=int(option["id"]), name=str(option.get("name", option["id"]))))
            except (KeyError, TypeError, ValueError) as exc:
                raise MalformedSpec(f"enum {name!r} has an option without an integer id") from exc
        enums[name] = tuple(parsed)
    return enums


def _cycle_catalogue(options: Tuple[EnumOption, ...]) -> CycleCatalogue:
    ids = {o.id for o in options}
    custom = max(ids)
    if custom == CITY_CYCLE:
        raise MalformedSpec("cycle_types must enumerate at least one code besides the city cycle")
    return CycleCatalogue(
        city=CITY_CYCLE,
        custom=custom,
        standard=frozenset(ids - {CITY_CYCLE, custom}),
    )


def _eco_threshold_code(options: Tuple[EnumOption, ...]) -> int:
    for option in options:
        if option.name.strip().lower() == "threshold":
            return option.id
    return DEFAULT_ECO_THRESHOLD
