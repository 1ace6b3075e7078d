"""Unit tests for build state tracking across target switches."""

from fwbuild.build.build_state import STATE_FILE_NAME, BuildStateGuard, clean_build_dir, read_build_state, write_build_state


class TestReadWriteBuildState:
    def test_missing_state_is_none(self, tmp_path):
        assert read_build_state(tmp_path / "build") is None

    def test_empty_state_is_none(self, tmp_path):
        (tmp_path / STATE_FILE_NAME).write_text("  \n")
        assert read_build_state(tmp_path) is None

    def test_roundtrip(self, tmp_path):
        build = tmp_path / "build"
        write_build_state(build, "mbed")
        assert (build / STATE_FILE_NAME).read_text() == "mbed"
        assert read_build_state(build) == "mbed"


class TestCleanBuildDir:
    def test_removes_files_and_directories(self, tmp_path):
        build = tmp_path / "build"
        (build / "sub").mkdir(parents=True)
        (build / "sub" / "x.o").write_text("x")
        (build / "a.o").write_text("a")
        write_build_state(build, "A")

        assert clean_build_dir(build) == 3
        assert build.is_dir()
        assert list(build.iterdir()) == []

    def test_missing_directory(self, tmp_path):
        assert clean_build_dir(tmp_path / "build") == 0


class TestBuildStateGuard:
    """Target switches clean the build directory."""

    def test_same_target_keeps_artifacts(self, tmp_path):
        build = tmp_path / "build"
        write_build_state(build, "A")
        (build / "a.o").write_text("a")

        assert BuildStateGuard(build).check("A") is False
        assert (build / "a.o").exists()

    def test_switch_cleans_and_claims(self, tmp_path):
        build = tmp_path / "build"
        write_build_state(build, "A")
        (build / "a.o").write_text("a")

        assert BuildStateGuard(build).check("B") is True
        assert not (build / "a.o").exists()
        assert read_build_state(build) == "B"

    def test_absent_state_cleans(self, tmp_path):
        """Artifacts of unknown provenance are never reused."""
        build = tmp_path / "build"
        build.mkdir()
        (build / "a.o").write_text("a")

        assert BuildStateGuard(build).check("A") is True
        assert not (build / "a.o").exists()
        assert read_build_state(build) == "A"

    def test_creates_build_directory(self, tmp_path):
        BuildStateGuard(tmp_path / "build").check("A")
        assert read_build_state(tmp_path / "build") == "A"
