import logging
import os

from src.domain.entities import statuses_for
from src.rules.models import Rules

logger = logging.getLogger(__name__)

REMOTE_BACKENDS = ("http", "memory")


class ConfigurationError(RuntimeError):
    """Startup configuration is unusable."""


def validate_ops_rules(rules: Rules, remote_backend: str = "http") -> None:
    """
    Validate operational requirements before startup.
    """
    # 1. Check Required Env
    missing = [env_var for env_var in rules.ops.required_env if env_var not in os.environ]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    # 2. Check remote backend
    if remote_backend not in REMOTE_BACKENDS:
        raise ConfigurationError(
            f"CONTENT_REMOTE must be one of {', '.join(REMOTE_BACKENDS)} (got '{remote_backend}')"
        )

    # 3. Every configured status machine must only name known statuses
    for kind, section in (("popup", rules.popup), ("circular", rules.circular)):
        if section.status_machine is None:
            continue
        known = set(statuses_for(kind))  # type: ignore[arg-type]
        for source, targets in section.status_machine.items():
            unknown = {source, *targets} - known
            if unknown:
                raise ConfigurationError(
                    f"{kind}.status_machine names unknown statuses: {', '.join(sorted(unknown))}"
                )

    logger.info("Configuration Validated.")
