from ebrt_core.services.field_mapper import map_input_to_backend  # noqa: F401
from ebrt_core.services.payload_builder import build_payload, classify_cycle  # noqa: F401
from ebrt_core.services.spec_index import parse as parse_spec  # noqa: F401
from ebrt_core.services.validator_client import ValidatorClient  # noqa: F401

__all__ = [
    "build_payload",
    "classify_cycle",
    "map_input_to_backend",
    "parse_spec",
    "ValidatorClient",
]
