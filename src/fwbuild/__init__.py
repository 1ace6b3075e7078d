"""fwbuild - incremental multi-platform firmware build orchestrator."""

__version__ = "0.1.0"
