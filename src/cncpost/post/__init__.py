"""Controller-specific post-processing of generated G-code."""

from .batch import process_many
from .processor import (
    PostProcessor,
    create_fanuc_post_processor,
    create_heidenhain_post_processor,
    create_post_processor,
    process_gcode,
)
from .result import OptimizationResult, OptimizationStats, ProgramValidation

__all__ = [
    "OptimizationResult",
    "OptimizationStats",
    "PostProcessor",
    "ProgramValidation",
    "create_fanuc_post_processor",
    "create_heidenhain_post_processor",
    "create_post_processor",
    "process_gcode",
    "process_many",
]
