"""Cutting-parameter advisor.

Pure helpers that sanity-check feeds and speeds before a program is
generated: chip load per tooth, surface speed, material-removal rate and a
short human-readable verdict.  Units are metric (mm, mm/min, RPM).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

# Reference chip load per tooth (mm) for a 6 mm cutter
CHIP_LOAD_TABLE: dict[str, float] = {
    "aluminum": 0.033,
    "steel": 0.018,
    "wood": 0.076,
    "plastic": 0.038,
    "brass": 0.033,
    "titanium": 0.013,
    "composite": 0.025,
    "other": 0.020,
}
DEFAULT_CHIP_LOAD = 0.020

REFERENCE_DIAMETER = 6.0
DIAMETER_EXPONENT = 0.3
CHIP_LOAD_TOLERANCE = 0.15

_MATERIAL_NAMES: dict[str, dict[str, str]] = {
    "en": {
        "aluminum": "aluminum",
        "steel": "steel",
        "wood": "wood",
        "plastic": "plastic",
        "brass": "brass",
        "titanium": "titanium",
        "composite": "composite",
    },
    "it": {
        "aluminum": "alluminio",
        "steel": "acciaio",
        "wood": "legno",
        "plastic": "plastica",
        "brass": "ottone",
        "titanium": "titanio",
        "composite": "composito",
    },
}

_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "fallback": "this material",
        "optimal": "✓ Optimal feed rate for {material}",
        "low": "⚠️ Feed rate too low for {material}. Try increasing it.",
        "high": "⚠️ Feed rate too high for {material}. Consider reducing it.",
    },
    "it": {
        "fallback": "questo materiale",
        "optimal": "✓ Avanzamento ottimale per {material}",
        "low": "⚠️ Avanzamento troppo basso per {material}. Prova ad aumentarlo.",
        "high": "⚠️ Avanzamento troppo alto per {material}. Considera di ridurlo.",
    },
}


@dataclass
class CuttingSettings:
    """Feeds and speeds for one tool/material combination."""

    tool_diameter: float      # mm
    flutes: int
    feedrate: float           # mm/min
    rpm: float
    stepover: float = 40.0    # percent of tool diameter
    stepdown: float = 1.0     # mm
    material: str = "other"


@dataclass
class CuttingStatistics:
    cutting_speed: float            # m/min
    chip_load: float                # mm/tooth
    material_removal_rate: float    # cm³/min
    effective_stepover: float       # mm


def _check(settings: CuttingSettings) -> None:
    if settings.rpm <= 0:
        raise ValueError("rpm must be positive")
    if settings.flutes <= 0:
        raise ValueError("flutes must be positive")


def actual_chip_load(settings: CuttingSettings) -> float:
    """Feed per tooth implied by *settings* (unrounded)."""
    _check(settings)
    return settings.feedrate / (settings.rpm * settings.flutes)


def calculate_optimal_chip_load(material: str, tool_diameter: float, flutes: int) -> float:
    """Reference chip load for *material*, scaled by cutter size.

    Larger cutters tolerate a heavier chip; the table value for a 6 mm tool
    is scaled by ``(diameter / 6) ** 0.3``.  *flutes* does not change the
    per-tooth figure and is accepted for call-site symmetry.
    """
    base = CHIP_LOAD_TABLE.get(material, DEFAULT_CHIP_LOAD)
    return base * math.pow(tool_diameter / REFERENCE_DIAMETER, DIAMETER_EXPONENT)


def calculate_cutting_statistics(settings: CuttingSettings) -> CuttingStatistics:
    chip_load = actual_chip_load(settings)
    cutting_speed = math.pi * settings.tool_diameter * settings.rpm / 1000.0
    effective_stepover = settings.stepover / 100.0 * settings.tool_diameter
    mrr = settings.feedrate * effective_stepover * settings.stepdown / 1000.0

    return CuttingStatistics(
        cutting_speed=round(cutting_speed, 1),
        chip_load=round(chip_load, 3),
        material_removal_rate=round(mrr, 2),
        effective_stepover=round(effective_stepover, 2),
    )


def calculate_recommended_plunge_rate(feedrate: float) -> int:
    """Plunge at 40 % of the cutting feed."""
    return round(feedrate * 0.4)


def _bounds(settings: CuttingSettings) -> tuple[float, float]:
    optimal = calculate_optimal_chip_load(
        settings.material, settings.tool_diameter, settings.flutes
    )
    return optimal * (1 - CHIP_LOAD_TOLERANCE), optimal * (1 + CHIP_LOAD_TOLERANCE)


def is_feed_rate_optimal(settings: CuttingSettings) -> bool:
    """True when the actual chip load is within ±15 % of the optimum."""
    lower, upper = _bounds(settings)
    return lower <= actual_chip_load(settings) <= upper


def get_cutting_feedback(settings: CuttingSettings, language: str = "en") -> str:
    """One-line verdict on the feed rate, in *language* ("en" or "it")."""
    messages = _MESSAGES.get(language, _MESSAGES["en"])

    if is_feed_rate_optimal(settings):
        names = _MATERIAL_NAMES.get(language, _MATERIAL_NAMES["en"])
        material = names.get(settings.material, messages["fallback"])
        return messages["optimal"].format(material=material)

    lower, _ = _bounds(settings)
    key = "low" if actual_chip_load(settings) < lower else "high"
    return messages[key].format(material=settings.material)
