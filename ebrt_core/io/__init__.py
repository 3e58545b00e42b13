from ebrt_core.io.config import ValidatorConfig, load_input_data, load_validator_config  # noqa: F401
from ebrt_core.io.drive_cycle import load_drive_cycle  # noqa: F401
from ebrt_core.io.spec import load_spec_index  # noqa: F401

__all__ = ["ValidatorConfig", "load_drive_cycle", "load_input_data", "load_spec_index", "load_validator_config"]
