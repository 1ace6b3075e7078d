"""Unit tests for the upload methods."""

import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest

from fwbuild.build.errors import ToolFailedError
from fwbuild.deploy import Lpc21ispDeployer, MassStorageDeployer, create_deployer
from fwbuild.deploy import deployer_lpc21isp
from fwbuild.platform_configs import UploadConfig

SERIAL = UploadConfig(method="lpc21isp", port="/dev/ttyUSB0", baud=115200, clock_khz=12000)


@pytest.fixture
def firmware(tmp_path) -> Path:
    path = tmp_path / "build" / "protoboard.bin"
    path.parent.mkdir()
    path.write_bytes(b"\x00\x01\x02\x03")
    return path


class TestCreateDeployer:
    def test_dispatch(self):
        assert isinstance(create_deployer(SERIAL), Lpc21ispDeployer)
        assert isinstance(create_deployer(UploadConfig(method="mass_storage", mount="/mnt")), MassStorageDeployer)

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unsupported upload method"):
            create_deployer(UploadConfig(method="jtag"))


class TestLpc21ispDeployer:
    @pytest.fixture(autouse=True)
    def _environment(self, monkeypatch):
        monkeypatch.delenv("TTY", raising=False)
        monkeypatch.delenv("DEBUG", raising=False)
        monkeypatch.setattr(deployer_lpc21isp.list_ports, "comports", lambda: [SimpleNamespace(device="/dev/ttyUSB0")])

    def test_command_line(self, firmware):
        cmd = Lpc21ispDeployer(SERIAL).build_command(firmware)
        assert cmd == ["lpc21isp", "-debug0", "-verify", "-bin", str(firmware), "/dev/ttyUSB0", "115200", "12000"]

    def test_environment_overrides(self, firmware, monkeypatch):
        monkeypatch.setenv("TTY", "/dev/ttyACM3")
        monkeypatch.setenv("DEBUG", "3")
        cmd = Lpc21ispDeployer(SERIAL).build_command(firmware)
        assert "-debug3" in cmd
        assert "/dev/ttyACM3" in cmd

    def test_deploy_runs_lpc21isp(self, firmware, monkeypatch):
        calls = []

        def fake_run_tool(cmd, description, **kwargs):
            calls.append(cmd)
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        monkeypatch.setattr(deployer_lpc21isp, "run_tool", fake_run_tool)
        result = Lpc21ispDeployer(SERIAL).deploy("protoboard", firmware)

        assert result.success
        assert "/dev/ttyUSB0" in result.message
        assert calls[0][0] == "lpc21isp"

    def test_tool_failure_is_reported(self, firmware, monkeypatch):
        def fake_run_tool(cmd, description, **kwargs):
            raise ToolFailedError(description, list(cmd), 1, "No answer on autobaud")

        monkeypatch.setattr(deployer_lpc21isp, "run_tool", fake_run_tool)
        result = Lpc21ispDeployer(SERIAL).deploy("protoboard", firmware)

        assert not result.success
        assert "No answer on autobaud" in result.message

    def test_missing_binary(self, tmp_path):
        result = Lpc21ispDeployer(SERIAL).deploy("protoboard", tmp_path / "missing.bin")
        assert not result.success
        assert "not found" in result.message

    def test_missing_port(self, firmware):
        result = Lpc21ispDeployer(UploadConfig(method="lpc21isp")).deploy("protoboard", firmware)
        assert not result.success
        assert "TTY" in result.message


class TestMassStorageDeployer:
    @pytest.fixture(autouse=True)
    def _environment(self, monkeypatch):
        monkeypatch.delenv("MOUNT", raising=False)

    def test_copies_and_replaces_old_images(self, firmware, tmp_path):
        mount = tmp_path / "MBED"
        mount.mkdir()
        (mount / "old.bin").write_bytes(b"old")
        (mount / "MBED.HTM").write_text("keep")

        result = MassStorageDeployer(UploadConfig(method="mass_storage", mount=str(mount))).deploy("mbed", firmware)

        assert result.success
        assert sorted(p.name for p in mount.iterdir()) == ["MBED.HTM", "mbed.bin"]
        assert (mount / "mbed.bin").read_bytes() == firmware.read_bytes()

    def test_mount_from_environment(self, firmware, tmp_path, monkeypatch):
        mount = tmp_path / "elsewhere"
        mount.mkdir()
        monkeypatch.setenv("MOUNT", str(mount))

        result = MassStorageDeployer(UploadConfig(method="mass_storage", mount="/Volumes/MBED/")).deploy("mbed", firmware)

        assert result.success
        assert (mount / "mbed.bin").exists()

    def test_missing_mount(self, firmware, tmp_path):
        result = MassStorageDeployer(UploadConfig(method="mass_storage", mount=str(tmp_path / "nope"))).deploy("mbed", firmware)
        assert not result.success
        assert "Mount point not found" in result.message

    def test_no_mount_configured(self, firmware, tmp_path, monkeypatch):
        """Without a mount point nothing in the working directory is touched."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "precious.bin").write_bytes(b"keep")

        result = MassStorageDeployer(UploadConfig(method="mass_storage")).deploy("mbed", firmware)

        assert not result.success
        assert "Mount point not specified for mbed" in result.message
        assert (tmp_path / "precious.bin").read_bytes() == b"keep"
        assert not (tmp_path / "mbed.bin").exists()
