"""Workflow runs: records, storage, executors and the approval state machine."""

__all__: list[str] = []
