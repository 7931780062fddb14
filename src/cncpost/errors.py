"""Exception types raised by cncpost."""


class CncPostError(Exception):
    """Base class for all cncpost errors."""


class GenerationError(CncPostError, ValueError):
    """Toolpath input that cannot be turned into a bounded program."""


class ProgramTooLargeError(CncPostError):
    """Program exceeds the line limit accepted by the post-processor."""

    def __init__(self, line_count: int, max_lines: int):
        super().__init__(
            f"Program has {line_count} lines, limit is {max_lines}"
        )
        self.line_count = line_count
        self.max_lines = max_lines
