"""Project configuration loader.

A project may ship its own fwbuild.json at the project root. Without one, the
packaged default_project.json is used: the two-platform layout (protoboard on
an LPC1114, mbed on an LPC1768) with sources under app/, platform/ and cpu/.
Uses importlib.resources so the default is found when installed as a wheel.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from ..build.errors import ConfigError
from .project_config_model import PlatformConfigModel, ProjectConfigModel, UploadConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAME = "fwbuild.json"
DEFAULT_CONFIG_NAME = "default_project.json"


def load_default_config() -> dict[str, Any]:
    """Load the packaged default project configuration."""
    config_file = resources.files(__package__).joinpath(DEFAULT_CONFIG_NAME)
    with config_file.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_project_config(project_dir: Path) -> ProjectConfigModel:
    """Load the configuration for a project directory.

    Args:
        project_dir: Project root

    Returns:
        Parsed configuration from fwbuild.json, or the packaged default

    Raises:
        ConfigError: If fwbuild.json is unreadable or invalid
    """
    config_path = Path(project_dir) / PROJECT_CONFIG_NAME
    if not config_path.exists():
        logger.debug(f"No {PROJECT_CONFIG_NAME} in {project_dir}, using packaged default")
        return ProjectConfigModel.from_dict(load_default_config())

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to read {config_path}: {e}") from e

    logger.debug(f"Loaded project configuration from {config_path}")
    return ProjectConfigModel.from_dict(data)


__all__ = [
    "PROJECT_CONFIG_NAME",
    "PlatformConfigModel",
    "ProjectConfigModel",
    "UploadConfig",
    "load_default_config",
    "load_project_config",
]
