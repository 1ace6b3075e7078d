"""Mass-storage Deployer - copy the binary onto a mounted board drive.

Boards like the mbed LPC1768 expose a USB drive and flash the newest .bin
found on it at reset. Old images are removed first so the board can't pick
a stale one.

Environment variables:
    MOUNT: mount point of the board drive (default: the target's configured mount)
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from ..platform_configs import UploadConfig
from .deployer import DeploymentResult, IDeployer

logger = logging.getLogger(__name__)

MOUNT_ENV_VAR = "MOUNT"


class MassStorageDeployer(IDeployer):
    """Uploads firmware by copying it to a mounted drive."""

    def __init__(self, upload: UploadConfig, verbose: bool = False):
        self.upload = upload
        self.verbose = verbose

    @property
    def mount(self) -> Optional[Path]:
        """Mount point of the board drive, or None if neither $MOUNT nor the config names one."""
        location = os.environ.get(MOUNT_ENV_VAR) or self.upload.mount
        return Path(location) if location else None

    def deploy(self, target: str, firmware_bin: Path) -> DeploymentResult:
        if not firmware_bin.exists():
            return DeploymentResult(success=False, message=f"Firmware binary not found: {firmware_bin}")

        mount = self.mount
        if mount is None:
            return DeploymentResult(success=False, message=f"Mount point not specified for {target} (set {MOUNT_ENV_VAR})")
        if not mount.is_dir():
            return DeploymentResult(success=False, message=f"Mount point not found: {mount} (set {MOUNT_ENV_VAR})")

        try:
            for old_image in mount.glob("*.bin"):
                logger.debug(f"Removing old image {old_image}")
                old_image.unlink()
            destination = mount / f"{target}.bin"
            shutil.copyfile(firmware_bin, destination)
        except OSError as e:
            return DeploymentResult(success=False, message=f"Copy to {mount} failed: {e}")

        if self.verbose:
            logger.info(f"Copied {firmware_bin} to {destination}")
        return DeploymentResult(success=True, message=f"Successfully deployed {target} firmware to {destination}")
