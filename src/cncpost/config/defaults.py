"""Default generation parameters and size limits.

These are conservative starting points for a small router or mill cutting
in millimetres; callers override them per job.
"""

from ..core.tool import Tool, ToolType

DEFAULT_MACHINE_TYPE = "mill"
DEFAULT_FEEDRATE = 1000          # mm/min
DEFAULT_PLUNGERATE = 300         # mm/min
DEFAULT_SPINDLE_SPEED = 12000    # RPM
DEFAULT_COORDINATE_SYSTEM = "G54"
DEFAULT_SAFE_HEIGHT = 5.0
DEFAULT_CLEARANCE_HEIGHT = 10.0
DEFAULT_ARC_TOLERANCE = 0.01
DEFAULT_DEPTH = 5.0

# Programs longer than this are rejected at the post-processor boundary
MAX_PROGRAM_LINES = 1_000_000

GENERATOR_BANNER = "Generated by cncpost G-code generator"


def build_default_tool() -> Tool:
    """6 mm two-flute flat endmill, the tool assumed when none is given."""
    return Tool(
        name="Default",
        diameter=6.0,
        tool_type=ToolType.ENDMILL,
        flute_count=2,
        number=1,
    )
