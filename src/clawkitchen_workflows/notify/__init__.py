"""Approval notifications: message formatting and gateway delivery."""

__all__: list[str] = []
