"""Firmware upload for fwbuild targets.

Two transfer methods are supported, selected by a target's upload config:
- lpc21isp: serial in-system programming (NXP LPC bootloader)
- mass_storage: copying the binary onto a mounted drive (mbed-style boards)
"""

from ..platform_configs import UploadConfig
from .deployer import DeploymentResult, IDeployer
from .deployer_lpc21isp import Lpc21ispDeployer
from .deployer_mass_storage import MassStorageDeployer


def create_deployer(upload: UploadConfig, verbose: bool = False) -> IDeployer:
    """Create the deployer for a target's upload method.

    Raises:
        ValueError: If the method is unknown
    """
    if upload.method == "lpc21isp":
        return Lpc21ispDeployer(upload, verbose=verbose)
    if upload.method == "mass_storage":
        return MassStorageDeployer(upload, verbose=verbose)
    raise ValueError(f"Unsupported upload method: {upload.method}")


__all__ = [
    "DeploymentResult",
    "IDeployer",
    "Lpc21ispDeployer",
    "MassStorageDeployer",
    "create_deployer",
]
