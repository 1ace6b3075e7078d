"""Tests for artifact naming and the source -> object registry."""

import pytest

from fwbuild.build.artifact_namer import DIGEST_LENGTH, ArtifactNamer, depfile_for, source_digest, to_objects
from fwbuild.build.build_session import BuildSession
from fwbuild.build.errors import ArtifactCollisionError


@pytest.fixture
def session(tmp_path):
    return BuildSession(tmp_path, "build")


class TestArtifactNamer:
    """Determinism and uniqueness of artifact names."""

    def test_name_is_prefixed_with_digest(self, session):
        """Artifact is <build>/<digest>_<stem>.o."""
        name = ArtifactNamer(session).name("app/main.c")
        assert name == f"build/{source_digest('app/main.c')}_main.o"
        assert len(source_digest("app/main.c")) == DIGEST_LENGTH

    def test_same_basename_different_directories(self, session):
        """Two uart.c files in different trees never share an object."""
        namer = ArtifactNamer(session)
        platform_uart = namer.name("platform/mbed/uart.c")
        cpu_uart = namer.name("cpu/lpc1768/src/uart.c")
        assert platform_uart != cpu_uart
        assert platform_uart.endswith("_uart.o")
        assert cpu_uart.endswith("_uart.o")

    def test_repeated_calls_are_stable(self, session):
        """The same path yields the same name within a session."""
        namer = ArtifactNamer(session)
        assert namer.name("target_A/x.c") == namer.name("target_A/x.c")

    def test_stable_across_sessions(self, tmp_path):
        """The same path yields the same name in a fresh session (next invocation)."""
        first = ArtifactNamer(BuildSession(tmp_path, "build")).name("target_A/x.c")
        second = ArtifactNamer(BuildSession(tmp_path, "build")).name("target_A/x.c")
        assert first == second

    def test_equivalent_spellings_share_a_name(self, session):
        """'./app/main.c' and 'app/main.c' are the same source."""
        namer = ArtifactNamer(session)
        assert namer.name("./app/main.c") == namer.name("app/main.c")

    def test_assembly_sources_get_object_names(self, session):
        """Assembly sources are named like C sources."""
        assert ArtifactNamer(session).name("platform/common/startup.s").endswith("_startup.o")

    def test_name_registers_mapping(self, session):
        """Every call records source -> artifact in the session registry."""
        artifact = ArtifactNamer(session).name("app/main.c")
        assert session.artifacts == {"app/main.c": artifact}
        assert session.is_object(artifact)
        assert not session.is_object("app/main.c")

    def test_registry_is_per_session(self, tmp_path):
        """A new session starts with an empty registry."""
        ArtifactNamer(BuildSession(tmp_path)).name("app/main.c")
        assert BuildSession(tmp_path).artifacts == {}

    def test_collision_is_detected(self, session):
        """Two sources claiming one artifact path raise instead of aliasing."""
        session.register_artifact("app/one.c", "build/0000000000000000_x.o")
        with pytest.raises(ArtifactCollisionError, match="both map"):
            session.register_artifact("app/two.c", "build/0000000000000000_x.o")

    def test_depfile_sits_beside_object(self):
        assert depfile_for("build/abc_main.o") == "build/abc_main.d"


class TestToObjects:
    """The explicit source-set -> object-set mapping."""

    def test_maps_in_order(self, session):
        namer = ArtifactNamer(session)
        a = namer.name("app/a.c")
        b = namer.name("app/b.c")
        assert to_objects(["app/b.c", "app/a.c"], session.artifacts) == [b, a]

    def test_unregistered_source_raises(self, session):
        with pytest.raises(KeyError, match="no registered artifact"):
            to_objects(["app/missing.c"], session.artifacts)

    def test_uses_only_the_given_registry(self, tmp_path):
        """A plain dict works; nothing global is consulted."""
        assert to_objects(["a.c"], {"a.c": "build/x_a.o"}) == ["build/x_a.o"]
