"""
Core application engine for orchestrating an export run.

This package contains the primary logic. The `ExportPipeline` acts as the
high-level run coordinator, delegating the per-preset exports to the
`ExportOrchestrator`, which drives the engine through the `ProcessRunner`.
"""
