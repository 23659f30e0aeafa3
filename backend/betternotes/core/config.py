"""
Application configuration settings.
"""

from pathlib import Path
from typing import Callable, List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings
from loguru import logger


class Settings(BaseSettings):
    """Application settings."""

    # Application
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    WORKERS: int = 1
    SERVICE_NAME: str = "betternotes-app-api"

    # CORS (comma separated; empty allows every origin)
    ALLOWED_ORIGINS: str = ""

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "./data/logs/app.log"

    # Templates
    TEMPLATE_DIR: str = "./templates"

    # LaTeX compilation
    LATEX_TIMEOUT_MS: int = 30000
    LATEX_MAX_BUFFER_BYTES: int = 20 * 1024 * 1024
    LATEX_MAX_LOG_CHARS: int = 60000
    LATEX_PROBE_TIMEOUT_SECONDS: float = 3.0
    LATEX_STOP_AFTER_FIRST_FAILURE: bool = True
    LATEX_APPLY_FALLBACKS: bool = True

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    COMPILE_RATE_LIMIT: str = "30/minute"

    @field_validator(
        "LATEX_TIMEOUT_MS",
        "LATEX_MAX_BUFFER_BYTES",
        "LATEX_MAX_LOG_CHARS",
        "LATEX_PROBE_TIMEOUT_SECONDS",
        mode="after",
    )
    @classmethod
    def validate_positive(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def template_dir_path(self) -> Path:
        return Path(self.TEMPLATE_DIR).resolve()

    @property
    def latex_timeout_seconds(self) -> float:
        return self.LATEX_TIMEOUT_MS / 1000.0

    class Config:
        env_file = ".env"
        case_sensitive = True


def build_config_report(
    config: Settings,
    exists: Optional[Callable[[str], bool]] = None,
) -> List[str]:
    """
    Validate the effective configuration once at startup.

    Args:
        config: Settings to inspect
        exists: Executable lookup used to check the LaTeX toolchain

    Returns:
        Advisory warnings; an empty list means the configuration looks healthy.
    """
    warnings: List[str] = []

    if not config.template_dir_path.is_dir():
        warnings.append(f"TEMPLATE_DIR does not exist: {config.template_dir_path}. /templates will be empty.")

    if config.LATEX_TIMEOUT_MS < 5000:
        warnings.append(
            f"LATEX_TIMEOUT_MS={config.LATEX_TIMEOUT_MS} is very low; most documents need several seconds."
        )

    if config.LATEX_MAX_LOG_CHARS > config.LATEX_MAX_BUFFER_BYTES:
        warnings.append(
            "LATEX_MAX_BUFFER_BYTES is smaller than LATEX_MAX_LOG_CHARS; per-process capture "
            "keeps only the last LATEX_MAX_BUFFER_BYTES of each toolchain pass."
        )

    if exists is not None and not (exists("latexmk") or exists("pdflatex")):
        warnings.append("Neither latexmk nor pdflatex found in PATH. /compile will return TOOLING_MISSING.")

    return warnings


# Global settings instance
settings = Settings()

# Configure logging
logger.remove()  # Remove default handler
if settings.LOG_FILE:
    logger.add(
        settings.LOG_FILE,
        level=settings.LOG_LEVEL,
        rotation="10 MB",
        retention="30 days",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )
logger.add(
    lambda msg: print(msg, end=""),
    level=settings.LOG_LEVEL,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | {message}"
)
