"""Application configuration using Pydantic Settings."""

import sys
import tempfile
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values can be provided via environment variables or a .env file.
    Settings are read once at startup and never mutated afterwards.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Code Runner"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: list[str] = ["*"]

    # Shared secret expected as a bearer token. Empty refuses every caller.
    api_key: SecretStr = SecretStr("")

    # Request limits
    max_code_bytes: int = Field(default=65536, gt=0)

    # Execution limits
    execution_timeout_seconds: float = Field(default=10.0, gt=0)
    max_output_bytes: int = Field(default=65536, gt=0)
    max_concurrent_executions: int = Field(default=4, gt=0)

    # Interpreter used for "python" submissions
    interpreter_path: str = sys.executable

    # Where per-request workspaces are created
    workspace_root: str = tempfile.gettempdir()

    # Child resource ceilings (POSIX only)
    memory_limit_mb: int = Field(default=256, gt=0)
    cpu_time_limit_seconds: int = 0  # 0 = derived from execution timeout
    max_open_files: int = Field(default=64, gt=0)
    # RLIMIT_NPROC counts every process owned by the service's uid, not just
    # the child's descendants. Run under a dedicated account, or set 0 to
    # leave the limit untouched.
    max_processes: int = Field(default=64, ge=0)
    max_file_size_mb: int = Field(default=16, gt=0)

    # Environment variables passed through to the child
    env_allowlist: list[str] = ["PATH", "LANG", "LC_ALL"]

    # Run the child in a fresh network namespace (needs `unshare`)
    isolate_network: bool = False

    @property
    def resolved_cpu_time_limit(self) -> int:
        """CPU seconds allowed for one child; one second above the wall deadline by default."""
        if self.cpu_time_limit_seconds > 0:
            return self.cpu_time_limit_seconds
        return int(self.execution_timeout_seconds) + 1


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
