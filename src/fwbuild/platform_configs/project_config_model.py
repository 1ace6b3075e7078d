"""
Type-safe project configuration models.

A project configuration (fwbuild.json, or the packaged default) is parsed into
these frozen dataclasses so the rest of the code never touches raw dicts.

Layout of the JSON document:

    {
      "toolchain_prefix": "arm-none-eabi-",
      "build_dir": "build",
      "common": {"sources": ["app/*.c"], "cflags": [...], "ldflags": [...]},
      "cpus": {"lpc1768": {"sources": ["cpu/lpc1768/src/*.c"]}},
      "platforms": {
        "mbed": {
          "cpu": "lpc1768",
          "sources": ["platform/mbed/*.c"],
          "cflags": ["-mcpu=cortex-m3"],
          "linker_script": "platform/mbed/layout.ld",
          "upload": {"method": "mass_storage", "mount": "/Volumes/MBED/"}
        }
      }
    }
"""

import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..build.build_session import normalize_path
from ..build.errors import ConfigError, UnknownTargetError

UPLOAD_METHODS = ("lpc21isp", "mass_storage")


def _mapping(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{where} must be a JSON object")
    return value


def _str(data: Dict[str, Any], key: str, default: str, where: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' in {where} must be a string")
    return value


def _int(data: Dict[str, Any], key: str, default: int, where: str) -> int:
    value = data.get(key, default)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' in {where} must be an integer")
    return value


def _build_dir(value: str) -> str:
    """Validate the output directory: a subdirectory of the project, never the project itself.

    The build directory is wiped on a target switch and by clean.
    """
    normalized = normalize_path(value) if value else "."
    if posixpath.isabs(normalized) or (len(normalized) > 1 and normalized[1] == ":"):
        raise ConfigError(f"'build_dir' must be relative to the project: {value}")
    if normalized in (".", "..") or normalized.startswith("../"):
        raise ConfigError(f"'build_dir' must be a subdirectory of the project: '{value}'")
    return normalized


def _str_list(data: Dict[str, Any], key: str, where: str) -> List[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' in {where} must be a list of strings")
    return list(value)


@dataclass(frozen=True)
class UploadConfig:
    """How a finished binary reaches the hardware.

    Attributes:
        method: "lpc21isp" (serial ISP) or "mass_storage" (copy to a mounted drive)
        port: Default serial device for lpc21isp (overridden by $TTY)
        baud: Serial baud rate for lpc21isp
        clock_khz: Target crystal frequency in kHz for lpc21isp
        mount: Default mount point for mass_storage (overridden by $MOUNT)
    """

    method: str
    port: str = ""
    baud: int = 115200
    clock_khz: int = 12000
    mount: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str) -> "UploadConfig":
        data = _mapping(data, f"'upload' in {where}")
        method = data.get("method", "")
        if method not in UPLOAD_METHODS:
            raise ConfigError(f"Unsupported upload method '{method}' in {where} (expected one of: {', '.join(UPLOAD_METHODS)})")
        mount = _str(data, "mount", "", where)
        if method == "mass_storage" and not mount:
            raise ConfigError(f"Upload method 'mass_storage' in {where} requires a 'mount'")
        return cls(
            method=method,
            port=_str(data, "port", "", where),
            baud=_int(data, "baud", 115200, where),
            clock_khz=_int(data, "clock_khz", 12000, where),
            mount=mount,
        )


@dataclass(frozen=True)
class PlatformConfigModel:
    """One hardware target.

    Attributes:
        name: Target name used on the command line and in artifact names
        cpu: CPU name; selects the cpu source set
        sources: Glob patterns of platform-specific sources
        cflags: Platform compile flags (appended to the common flags)
        linker_script: Project-relative linker script path
        upload: Upload configuration, or None if the target can't be uploaded
    """

    name: str
    cpu: str
    linker_script: str
    sources: List[str] = field(default_factory=list)
    cflags: List[str] = field(default_factory=list)
    upload: Optional[UploadConfig] = None

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "PlatformConfigModel":
        where = f"platform '{name}'"
        data = _mapping(data, where)
        for required in ("cpu", "linker_script"):
            if required not in data:
                raise ConfigError(f"Missing required field '{required}' in {where}")
        cpu = _str(data, "cpu", "", where)
        linker_script = _str(data, "linker_script", "", where)

        upload_data = data.get("upload")
        return cls(
            name=name,
            cpu=cpu,
            linker_script=linker_script,
            sources=_str_list(data, "sources", where),
            cflags=_str_list(data, "cflags", where),
            upload=UploadConfig.from_dict(upload_data, where) if upload_data else None,
        )


@dataclass(frozen=True)
class ProjectConfigModel:
    """Whole-project build configuration.

    Attributes:
        toolchain_prefix: Cross tool prefix (e.g. "arm-none-eabi-")
        build_dir: Project-relative output directory
        common_sources: Glob patterns compiled into every target
        common_cflags: Compile flags shared by every target
        common_ldflags: Link-only flags shared by every target
        cpu_sources: CPU name -> glob patterns of its sources
        platforms: Target name -> platform configuration, in declaration order
    """

    toolchain_prefix: str
    build_dir: str
    common_sources: List[str] = field(default_factory=list)
    common_cflags: List[str] = field(default_factory=list)
    common_ldflags: List[str] = field(default_factory=list)
    cpu_sources: Dict[str, List[str]] = field(default_factory=dict)
    platforms: Dict[str, PlatformConfigModel] = field(default_factory=dict)

    @property
    def targets(self) -> List[str]:
        return list(self.platforms)

    def platform(self, name: str) -> PlatformConfigModel:
        """Look up a target.

        Raises:
            UnknownTargetError: If the target isn't configured
        """
        if name not in self.platforms:
            raise UnknownTargetError(name, self.targets)
        return self.platforms[name]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectConfigModel":
        """
        Parse a project configuration dictionary.

        Raises:
            ConfigError: If required fields are missing or invalid
        """
        if not isinstance(data, dict):
            raise ConfigError("Project configuration must be a JSON object")

        common = _mapping(data.get("common", {}), "'common'")
        cpus = _mapping(data.get("cpus", {}), "'cpus'")
        platforms_data = _mapping(data.get("platforms", {}), "'platforms'")
        if not platforms_data:
            raise ConfigError("Project configuration defines no platforms")

        platforms = {name: PlatformConfigModel.from_dict(name, pdata) for name, pdata in platforms_data.items()}
        cpu_sources = {cpu: _str_list(_mapping(cdata, f"cpu '{cpu}'"), "sources", f"cpu '{cpu}'") for cpu, cdata in cpus.items()}

        for platform in platforms.values():
            if platform.cpu not in cpu_sources:
                raise ConfigError(f"Platform '{platform.name}' uses undeclared cpu '{platform.cpu}'")

        return cls(
            toolchain_prefix=_str(data, "toolchain_prefix", "arm-none-eabi-", "project configuration"),
            build_dir=_build_dir(_str(data, "build_dir", "build", "project configuration")),
            common_sources=_str_list(common, "sources", "common"),
            common_cflags=_str_list(common, "cflags", "common"),
            common_ldflags=_str_list(common, "ldflags", "common"),
            cpu_sources=cpu_sources,
            platforms=platforms,
        )
