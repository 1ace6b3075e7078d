"""Deployer interface shared by all upload methods."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass
class DeploymentResult:
    """Outcome of a firmware upload."""

    success: bool
    message: str


class IDeployer(ABC):
    """Transfers a built binary image onto a target board."""

    @abstractmethod
    def deploy(self, target: str, firmware_bin: Path) -> DeploymentResult:
        """Upload a binary image.

        Args:
            target: Target name the image was built for
            firmware_bin: Path to the raw binary image

        Returns:
            DeploymentResult with success status and message
        """
        raise NotImplementedError
