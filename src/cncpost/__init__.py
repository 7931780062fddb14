"""cncpost: toolpath to G-code generation and controller post-processing."""

from .config import ControllerType, OptimizationOptions, get_profile, list_profiles
from .core.cutting import (
    CuttingSettings,
    CuttingStatistics,
    calculate_cutting_statistics,
    calculate_optimal_chip_load,
    calculate_recommended_plunge_rate,
    get_cutting_feedback,
    is_feed_rate_optimal,
)
from .core.toolpath import (
    EntryType,
    ExitType,
    OperationType,
    Point,
    Toolpath,
    ToolpathOperation,
    Workpiece,
)
from .errors import CncPostError, GenerationError, ProgramTooLargeError
from .gcode import GCodeGenerator, GenerationParams, generate_gcode, remove_redundant_moves
from .post import (
    OptimizationResult,
    PostProcessor,
    create_fanuc_post_processor,
    create_heidenhain_post_processor,
    create_post_processor,
    process_gcode,
    process_many,
)

__version__ = "0.1.0"

__all__ = [
    "CncPostError",
    "ControllerType",
    "CuttingSettings",
    "CuttingStatistics",
    "EntryType",
    "ExitType",
    "GCodeGenerator",
    "GenerationError",
    "GenerationParams",
    "OperationType",
    "OptimizationOptions",
    "OptimizationResult",
    "Point",
    "PostProcessor",
    "ProgramTooLargeError",
    "Toolpath",
    "ToolpathOperation",
    "Workpiece",
    "calculate_cutting_statistics",
    "calculate_optimal_chip_load",
    "calculate_recommended_plunge_rate",
    "create_fanuc_post_processor",
    "create_heidenhain_post_processor",
    "create_post_processor",
    "generate_gcode",
    "get_cutting_feedback",
    "get_profile",
    "is_feed_rate_optimal",
    "list_profiles",
    "process_gcode",
    "process_many",
    "remove_redundant_moves",
]
