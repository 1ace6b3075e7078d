"""LPC21ISP Deployer - serial in-system programming for NXP LPC parts.

Flashes the raw binary through the chip's ROM bootloader:

    lpc21isp -debug<level> -verify -bin build/protoboard.bin <port> <baud> <clock_khz>

Environment variables:
    TTY:   serial device (default: the target's configured port)
    DEBUG: lpc21isp debug level (default: 0)
"""

import logging
import os
from pathlib import Path

from serial.tools import list_ports

from ..build.errors import ToolFailedError
from ..platform_configs import UploadConfig
from ..subprocess_utils import run_tool
from .deployer import DeploymentResult, IDeployer

logger = logging.getLogger(__name__)

PORT_ENV_VAR = "TTY"
DEBUG_ENV_VAR = "DEBUG"


def detected_ports() -> list[str]:
    """Serial devices currently reported by the operating system."""
    return sorted(port.device for port in list_ports.comports())


class Lpc21ispDeployer(IDeployer):
    """Uploads firmware with lpc21isp over a serial port."""

    def __init__(self, upload: UploadConfig, verbose: bool = False):
        self.upload = upload
        self.verbose = verbose

    @property
    def port(self) -> str:
        return os.environ.get(PORT_ENV_VAR) or self.upload.port

    @property
    def debug_level(self) -> str:
        return os.environ.get(DEBUG_ENV_VAR, "0")

    def build_command(self, firmware_bin: Path) -> list[str]:
        return [
            "lpc21isp",
            f"-debug{self.debug_level}",
            "-verify",
            "-bin",
            str(firmware_bin),
            self.port,
            str(self.upload.baud),
            str(self.upload.clock_khz),
        ]

    def deploy(self, target: str, firmware_bin: Path) -> DeploymentResult:
        if not firmware_bin.exists():
            return DeploymentResult(success=False, message=f"Firmware binary not found: {firmware_bin}")

        port = self.port
        if not port:
            return DeploymentResult(success=False, message=f"Serial port not specified for {target} (set {PORT_ENV_VAR})")

        ports = detected_ports()
        if port not in ports:
            logger.warning(f"Serial port {port} not among detected ports: {', '.join(ports) or 'none'}")

        cmd = self.build_command(firmware_bin)
        if self.verbose:
            logger.info(f"Running lpc21isp: {' '.join(cmd)}")

        try:
            run_tool(cmd, f"Flash {firmware_bin.name} via {port}")
        except ToolFailedError as e:
            return DeploymentResult(success=False, message=str(e))

        return DeploymentResult(success=True, message=f"Successfully deployed {target} firmware to {port}")
