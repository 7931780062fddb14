"""Result types returned by the post-processors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..gcode.validate import ValidationResult


def count_lines(code: str) -> int:
    """Line count used in every statistic: ``len(code.split("\\n"))``."""
    return len(code.split("\n"))


def reduction_percent(original_lines: int, optimized_lines: int) -> float:
    if original_lines == 0:
        return 0.0
    return round((original_lines - optimized_lines) / original_lines * 100, 2)


@dataclass
class OptimizationStats:
    original_lines: int
    optimized_lines: int
    reduction_percent: float
    estimated_time_reduction: float = 0.0
    minor_warnings: list[str] = field(default_factory=list)
    major_warnings: list[str] = field(default_factory=list)

    @classmethod
    def measure(cls, original: str, optimized: str, time_factor: float) -> OptimizationStats:
        """Stats from the actual line counts of *original* and *optimized*.

        ``estimated_time_reduction`` is ``removed lines * time_factor``.
        """
        before, after = count_lines(original), count_lines(optimized)
        return cls(
            original_lines=before,
            optimized_lines=after,
            reduction_percent=reduction_percent(before, after),
            estimated_time_reduction=(before - after) * time_factor,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "originalLines": self.original_lines,
            "optimizedLines": self.optimized_lines,
            "reductionPercent": self.reduction_percent,
            "estimatedTimeReduction": self.estimated_time_reduction,
            "minorWarnings": list(self.minor_warnings),
            "majorWarnings": list(self.major_warnings),
        }


@dataclass
class ProgramValidation:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    @classmethod
    def from_result(cls, result: ValidationResult) -> ProgramValidation:
        return cls(errors=result.errors, warnings=result.warnings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass
class OptimizationResult:
    """One post-processing run: the program plus what was done to it."""

    code: str
    improvements: list[str]
    stats: OptimizationStats
    validation: ProgramValidation

    @classmethod
    def failed(cls, code: str, exc: BaseException) -> OptimizationResult:
        """The untouched input, flagged with the failure that stopped processing."""
        lines = count_lines(code)
        return cls(
            code=code,
            improvements=[],
            stats=OptimizationStats(
                original_lines=lines,
                optimized_lines=lines,
                reduction_percent=0.0,
                estimated_time_reduction=0.0,
                major_warnings=[f"Post-processing failed: {exc}"],
            ),
            validation=ProgramValidation(errors=[f"Processing error: {exc}"]),
        )

    def to_dict(self) -> dict[str, Any]:
        """camelCase mapping consumed by the application layer."""
        return {
            "code": self.code,
            "improvements": list(self.improvements),
            "stats": self.stats.to_dict(),
            "validation": self.validation.to_dict(),
        }
