from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings loaded from HUBHOOK_* environment variables.

    The projects themselves (checkout location, git path, repositories and
    their secrets) live in the INI file named by `config_file`; see
    hubhook.projects.registry. Command-line flags override these values.
    """

    model_config = SettingsConfigDict(
        env_prefix="HUBHOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Path to the INI projects file.
    config_file: str = ""

    # Bind address
    host: str = "127.0.0.1"
    port: int = 8000

    # Cap on concurrently handled requests; None leaves it to uvicorn.
    max_concurrency: Optional[int] = None

    # Log computed/expected digests at DEBUG when a signature check fails.
    # Off by default since the digests are comparands of a secret check.
    log_signature_digests: bool = False

    # Sentry: leave blank to disable error capture.
    sentry_dsn: str = ""

    # Console log renderer and DEBUG level when set.
    debug: bool = False

    @field_validator("max_concurrency")
    @classmethod
    def positive_concurrency(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("max_concurrency must be at least 1")
        return v
