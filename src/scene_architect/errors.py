"""Exceptions shared by the planner, dispatcher, and drivers."""

from __future__ import annotations


class InvalidArgumentError(ValueError):
    """Raised for malformed run inputs before any sampling or dispatch happens."""


__all__ = ["InvalidArgumentError"]
