"""
Tool configuration
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from the environment once at startup."""

    # Default Caddy version when no positional version is given;
    # empty means the toolchain's default ("latest")
    CADDY_VERSION: str = ""

    # Toolchain
    XCADDY_GO: str = "go"
    XCADDY_WORKSPACE_ROOT: str | None = None
    XCADDY_SKIP_CLEANUP: bool = False

    # Seconds a child gets to exit after an interrupt before it is killed
    XCADDY_GRACE_PERIOD: float = 10.0

    # Logging
    XCADDY_DEBUG: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        frozen=True,
        extra="ignore",
    )
