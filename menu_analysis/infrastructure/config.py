"""
Backend configuration.

Built once at process start by ``BackendConfig.from_env()`` and passed
explicitly to the router and the service factory. Nothing else reads
the environment.

Example .env:
    MENU_AI_PROVIDER=gemini
    MENU_BACKEND_MODE=local
    GEMINI_API_KEY=...
    API_TIMEOUT_SECONDS=30
"""

import os
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from menu_analysis.domain.shared.errors import ConfigurationError


class Provider(str, Enum):
    """Logical AI provider."""

    GEMINI = "gemini"
    VERTEX = "vertex"


class BackendMode(str, Enum):
    """Where the provider is invoked from."""

    LOCAL = "local"  # Direct SDK call
    REMOTE = "remote"  # Server-side function


_TRUE_VALUES = {"1", "true", "yes", "on"}


class BackendConfig(BaseModel):
    """
    Engine configuration.

    Secrets are excluded from repr; use ``sanitized()`` for logging.
    """

    model_config = ConfigDict(frozen=True)

    provider: Provider = Provider.GEMINI
    backend_mode: BackendMode = BackendMode.LOCAL

    gemini_api_key: Optional[str] = Field(None, repr=False)
    gemini_model: str = "gemini-1.5-flash"

    vertex_project_id: Optional[str] = None
    vertex_location: str = "us-central1"
    vertex_credentials: Optional[str] = Field(
        None, repr=False, description="Service-account JSON or path to a key file"
    )
    vertex_model: str = "gemini-1.5-flash"

    remote_functions_url: Optional[str] = None
    remote_functions_key: Optional[str] = Field(None, repr=False)

    api_timeout_seconds: float = Field(30.0, gt=0)
    cache_namespace: str = Field("wcie_cache", min_length=1)
    cache_text_source_chars: int = Field(120, gt=0)

    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[str] = None,
    ) -> "BackendConfig":
        """
        Build configuration from environment variables.

        Args:
            environ: Explicit variables (skips .env loading; used by tests)
            env_file: Path of a .env file to load before reading os.environ

        Returns:
            BackendConfig

        Raises:
            ConfigurationError: If a value is missing or malformed
        """
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        def get(name: str) -> Optional[str]:
            value = environ.get(name)
            if value is None or not value.strip():
                return None
            return value.strip()

        values: Dict[str, Any] = {
            "gemini_api_key": get("GEMINI_API_KEY"),
            "vertex_project_id": get("VERTEX_PROJECT_ID"),
            "vertex_credentials": get("VERTEX_CREDENTIALS"),
            "remote_functions_url": get("REMOTE_FUNCTIONS_URL"),
            "remote_functions_key": get("REMOTE_FUNCTIONS_KEY"),
        }
        optional = {
            "provider": get("MENU_AI_PROVIDER"),
            "backend_mode": get("MENU_BACKEND_MODE"),
            "gemini_model": get("GEMINI_MODEL"),
            "vertex_location": get("VERTEX_LOCATION"),
            "vertex_model": get("VERTEX_MODEL"),
            "api_timeout_seconds": get("API_TIMEOUT_SECONDS"),
            "cache_namespace": get("CACHE_NAMESPACE"),
            "cache_text_source_chars": get("CACHE_TEXT_SOURCE_CHARS"),
            "log_level": get("LOG_LEVEL"),
        }
        values.update({k: v for k, v in optional.items() if v is not None})
        if values.get("provider"):
            values["provider"] = values["provider"].lower()
        if values.get("backend_mode"):
            values["backend_mode"] = values["backend_mode"].lower()

        log_json = get("LOG_JSON")
        if log_json is not None:
            values["log_json"] = log_json.lower() in _TRUE_VALUES

        try:
            return cls(**values)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ConfigurationError(f"Invalid configuration: {fields}") from e

    def sanitized(self) -> Dict[str, Any]:
        """Configuration without secrets, safe to log."""
        data = self.model_dump(
            mode="json",
            exclude={"gemini_api_key", "vertex_credentials", "remote_functions_key"},
        )
        data["gemini_api_key_present"] = bool(self.gemini_api_key)
        data["vertex_credentials_present"] = bool(self.vertex_credentials)
        data["remote_functions_key_present"] = bool(self.remote_functions_key)
        return data
