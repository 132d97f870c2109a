"""Workflow definitions: typed models, validation, file storage and templates."""

__all__: list[str] = []
