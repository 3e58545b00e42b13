import logging

from django.apps import AppConfig, apps
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from ebrt_core.domain.errors import MalformedSpec
from ebrt_core.io.config import load_validator_config
from ebrt_core.io.spec import load_spec_index
from ebrt_core.services.validator_client import ValidatorClient

logger = logging.getLogger(__name__)

VALIDATOR_SETTINGS = (
    "EBRT_VALIDATOR_URL",
    "EBRT_SHARED_SECRET",
    "EBRT_VALIDATOR_TIMEOUT",
    "EBRT_VALIDATOR_MAX_ATTEMPTS",
    "EBRT_VALIDATOR_BACKOFF",
    "EBRT_VALIDATOR_DEADLINE",
    "EBRT_VALIDATOR_LEASE",
)


class SimulationsConfig(AppConfig):
    name = "simulations"
    default_auto_field = "django.db.models.BigAutoField"

    spec_index = None
    validator_config = None

    def ready(self):
        # Without a valid specification no payload can be built; refuse to start.
        try:
            self.spec_index = load_spec_index(settings.EBRT_SPEC_PATH)
        except MalformedSpec as exc:
            raise ImproperlyConfigured(str(exc)) from exc

        values = {name: getattr(settings, name) for name in VALIDATOR_SETTINGS if hasattr(settings, name)}
        try:
            self.validator_config = load_validator_config(values)
        except ValueError as exc:
            raise ImproperlyConfigured(str(exc)) from exc

        if not self.validator_config.signed:
            logger.warning("EBRT_SHARED_SECRET is not set; validator requests will be sent unsigned")


def get_spec_index():
    return apps.get_app_config("simulations").spec_index


def get_validator_client() -> ValidatorClient:
    return ValidatorClient(apps.get_app_config("simulations").validator_config)


def get_claim_lease() -> float:
    return apps.get_app_config("simulations").validator_config.claim_lease
