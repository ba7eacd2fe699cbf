"""
Runtime Configuration

Settings for the parts of the engine that talk to the custody API (the
organization public key lookup) and for logging. Values come from the
process environment; a ``.env`` file in the working directory is loaded
first when present.

Environment Variables:
    - PLANBOK_API_URL: Custody API base URL (default ``https://api.planbok.io/v2``)
    - PLANBOK_API_KEY: Custody API key, required only for remote calls
    - ORGANIZATION_PK: Organization public key; skips the remote lookup when set
    - PLANBOK_REQUEST_TIMEOUT: HTTP timeout in seconds (default 30)
    - MPC_VERIFY_LOG_LEVEL: Log level for the ``mpc_verify`` logger (default INFO)
"""

import os
from typing import Mapping, Optional

import dotenv
from pydantic import BaseModel, Field, ValidationError

from .engine.exceptions import ConfigurationError

dotenv.load_dotenv()

DEFAULT_API_URL = "https://api.planbok.io/v2"
DEFAULT_REQUEST_TIMEOUT = 30.0


class Settings(BaseModel):
    """Custody API and logging configuration."""
    planbok_api_url: str = Field(DEFAULT_API_URL, description="Custody API base URL")
    planbok_api_key: str = Field("", description="Custody API key")
    organization_public_key: str = Field("", description="Organization public key (ORGANIZATION_PK)")
    request_timeout: float = Field(DEFAULT_REQUEST_TIMEOUT, gt=0, description="HTTP timeout in seconds")
    log_level: str = Field("INFO", description="Log level name")

    @property
    def api_base_url(self) -> str:
        return self.planbok_api_url.rstrip("/")

    def require_api_key(self) -> str:
        """
        Return the API key for a remote call.

        Raises:
            ConfigurationError: If PLANBOK_API_KEY is not configured.
        """
        if not self.planbok_api_key:
            raise ConfigurationError(
                "PLANBOK_API_KEY is not set; it is required to query the custody API"
            )
        return self.planbok_api_key


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build ``Settings`` from environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ`` (useful in tests).

    Returns:
        Settings: Parsed configuration.

    Raises:
        ConfigurationError: If a value is present but invalid (e.g. a
            non-numeric timeout).

    Example:
        settings = load_settings()
        provider = OrganizationKeyProvider(settings)
    """
    env = os.environ if environ is None else environ
    values = {
        "planbok_api_url": env.get("PLANBOK_API_URL") or DEFAULT_API_URL,
        "planbok_api_key": env.get("PLANBOK_API_KEY", ""),
        "organization_public_key": env.get("ORGANIZATION_PK", ""),
        "log_level": env.get("MPC_VERIFY_LOG_LEVEL") or "INFO",
    }
    timeout = env.get("PLANBOK_REQUEST_TIMEOUT")
    if timeout:
        values["request_timeout"] = timeout

    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
