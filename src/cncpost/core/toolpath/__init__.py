"""Toolpath data model package."""

from .base import (
    EntryType,
    ExitType,
    OperationType,
    Point,
    Toolpath,
    ToolpathOperation,
    Workpiece,
)

__all__ = [
    "EntryType",
    "ExitType",
    "OperationType",
    "Point",
    "Toolpath",
    "ToolpathOperation",
    "Workpiece",
]
