"""Build graph engine for fwbuild.

The modules here construct and execute the per-invocation task graph:
artifact naming, graph nodes, dependency ingestion, variant composition,
build state tracking and scheduling. The entry point is
fwbuild.build.orchestrator.BuildOrchestrator.
"""
