"""G-code generation, tokenizing and validation."""

from .generator import GCodeGenerator, GenerationParams, generate_gcode, remove_redundant_moves
from .validate import ValidationIssue, ValidationResult, validate_toolpath

__all__ = [
    "GCodeGenerator",
    "GenerationParams",
    "ValidationIssue",
    "ValidationResult",
    "generate_gcode",
    "remove_redundant_moves",
    "validate_toolpath",
]
