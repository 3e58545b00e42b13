from ebrt_core.domain.errors import (  # noqa: F401
    EbrtError,
    InputValidationError,
    InvalidScenario,
    MalformedSpec,
    MissingRequiredField,
    NotFound,
    SubmissionInProgress,
    UpstreamResponseInvalid,
    UpstreamUnavailable,
)
from ebrt_core.domain.models import (  # noqa: F401
    CycleCatalogue,
    EnumOption,
    FieldDescriptor,
    SpecIndex,
)

__all__ = [
    "CycleCatalogue",
    "EbrtError",
    "EnumOption",
    "FieldDescriptor",
    "InputValidationError",
    "InvalidScenario",
    "MalformedSpec",
    "MissingRequiredField",
    "NotFound",
    "SpecIndex",
    "SubmissionInProgress",
    "UpstreamResponseInvalid",
    "UpstreamUnavailable",
]
