"""Alembic migrations for the goldenlink schema."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from goldenlink.config import get_database_config

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parents[5]
PYPROJECT_PATH: Final[Path] = PROJECT_ROOT / "pyproject.toml"
MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def _load_pyproject_options() -> dict[str, str]:
    """Read ``[tool.alembic]`` from pyproject.toml when running from a checkout."""

    try:
        with PYPROJECT_PATH.open("rb") as pyproject_file:
            document = tomllib.load(pyproject_file)
    except FileNotFoundError:
        return {}

    alembic_section = document.get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in alembic_section.items()}


def _build_config() -> Config:
    config = Config()
    options = _load_pyproject_options()

    script_path = MIGRATIONS_PATH
    script_location = options.pop("script_location", None)
    if script_location is not None:
        candidate = Path(script_location)
        resolved = candidate if candidate.is_absolute() else PROJECT_ROOT / candidate
        if resolved.is_dir():
            script_path = resolved
    config.set_main_option("script_location", str(script_path))

    for key, value in options.items():
        config.set_main_option(key, value)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the database schema to the latest revision."""

    config = _build_config()
    if engine is not None:
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
        return
    config.set_main_option("sqlalchemy.url", database_uri or get_database_config().uri)
    command.upgrade(config, "head")
