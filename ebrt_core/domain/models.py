from __future__ import annotations

import dataclasses
from typing import Any, FrozenSet, Mapping, Optional, Tuple


@dataclasses.dataclass(frozen=True)
class EnumOption:
    id: int
    name: str


@dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    group: str
    key: str
    backend_key: str
    type: str = "number"
    show_only: bool = False

    @property
    def calculated(self) -> bool:
        return self.show_only or self.type in ("calculated", "show_only")

    @property
    def qualified(self) -> str:
        return f"{self.group}.{self.backend_key}"


@dataclasses.dataclass(frozen=True)
class CycleCatalogue:
    city: int
    custom: int
    standard: FrozenSet[int]

    @property
    def codes(self) -> FrozenSet[int]:
        return self.standard | {self.city, self.custom}


@dataclasses.dataclass(frozen=True)
class SpecIndex:
    """
    Read-only view of a parsed specification document.
    Built once by services.spec_index.parse and shared by every request.
    """

    template: Mapping[str, Mapping[str, Any]]
    field_map: Mapping[str, Mapping[str, str]]
    calculated: FrozenSet[str]
    fields: Tuple[FieldDescriptor, ...]
    enums: Mapping[str, Tuple[EnumOption, ...]]
    cycles: CycleCatalogue
    eco_threshold_code: int

    def is_calculated(self, group: str, backend_key: str) -> bool:
        return f"{group}.{backend_key}" in self.calculated

    def enum_name(self, enum: str, option_id: int) -> Optional[str]:
        for option in self.enums.get(enum, ()):
            if option.id == option_id:
                return option.name
        return None
