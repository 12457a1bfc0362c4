"""
Runtime settings, read from the environment.

A ``.env`` file in the working directory (or the nearest parent that has
one) is loaded first, so local overrides don't need exporting.
"""

import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

OUTPUT_FORMATS = {
    "svg": "image/svg+xml",
    "png": "image/png",
    "eps": "application/postscript",
    "pdf": "application/pdf",
    "txt": "text/plain",
    "utxt": "text/plain",
}


@dataclass
class Settings:
    plantuml_command: List[str] = field(default_factory=lambda: ["plantuml"])
    render_timeout: float = 60.0
    output_format: str = "svg"
    max_jobs: int = 4
    log_level: str = "INFO"
    source_suffix: str = ".code"


def find_dotenv(start: Optional[Path] = None) -> Optional[Path]:
    """Return the nearest .env file from ``start`` upwards, if any."""
    cwd = start or Path.cwd()
    for directory in [cwd, *cwd.parents]:
        candidate = directory / ".env"
        if candidate.exists():
            return candidate
    return None


def _number(environ: Mapping[str, str], name: str, default, cast):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def check_log_level(level: str) -> str:
    level = level.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"CODESQUE_LOG_LEVEL must be a logging level name, got {level!r}")
    return level


def check_format(fmt: str) -> str:
    fmt = fmt.lower().lstrip(".")
    if fmt not in OUTPUT_FORMATS:
        supported = ", ".join(sorted(OUTPUT_FORMATS))
        raise ValueError(f"Unsupported output format '{fmt}' (expected one of: {supported})")
    return fmt


def settings_from_env(environ: Mapping[str, str]) -> Settings:
    defaults = Settings()
    command = environ.get("CODESQUE_PLANTUML_COMMAND")
    suffix = environ.get("CODESQUE_SOURCE_SUFFIX", defaults.source_suffix)
    return Settings(
        plantuml_command=shlex.split(command) if command else defaults.plantuml_command,
        render_timeout=_number(environ, "CODESQUE_RENDER_TIMEOUT", defaults.render_timeout, float),
        output_format=check_format(environ.get("CODESQUE_OUTPUT_FORMAT", defaults.output_format)),
        max_jobs=_number(environ, "CODESQUE_MAX_JOBS", defaults.max_jobs, int),
        log_level=check_log_level(environ.get("CODESQUE_LOG_LEVEL", defaults.log_level)),
        source_suffix=suffix if suffix.startswith(".") else f".{suffix}",
    )


def load_settings() -> Settings:
    env_path = find_dotenv()
    if env_path is not None:
        load_dotenv(env_path)
    return settings_from_env(os.environ)
