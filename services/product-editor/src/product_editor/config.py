"""
Environment-driven configuration for the product editor.
"""

import os
from dataclasses import dataclass
from typing import Optional

from product_editor.exceptions import ConfigurationError

DEFAULT_TIMEOUT = 30.0
DEFAULT_TEMPLATE_PAGE_SIZE = 100


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(
            message=f"{name} must be a number, got {raw!r}",
            config_key=name,
        )


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            message=f"{name} must be an integer, got {raw!r}",
            config_key=name,
        )


@dataclass(frozen=True)
class EditorSettings:
    """Runtime settings for the editor session and its API client."""
    api_url: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    template_page_size: int = DEFAULT_TEMPLATE_PAGE_SIZE
    log_level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "EditorSettings":
        """Build settings from PRODUCT_EDITOR_* and LOG_LEVEL environment variables."""
        return cls(
            api_url=os.environ.get("PRODUCT_EDITOR_API_URL") or None,
            timeout=_float_env("PRODUCT_EDITOR_TIMEOUT", DEFAULT_TIMEOUT),
            template_page_size=_int_env(
                "PRODUCT_EDITOR_TEMPLATE_PAGE_SIZE", DEFAULT_TEMPLATE_PAGE_SIZE
            ),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            json_logs=os.environ.get("PRODUCT_EDITOR_LOG_FORMAT", "").lower() == "json",
        )

    def require_api_url(self) -> str:
        if not self.api_url:
            raise ConfigurationError(
                message="PRODUCT_EDITOR_API_URL is not set",
                config_key="PRODUCT_EDITOR_API_URL",
            )
        return self.api_url.rstrip("/")
