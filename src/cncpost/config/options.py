"""Post-processing option switches.

Options are plain dataclasses.  ``OptimizationOptions.from_dict`` deep-merges
a partial mapping over the defaults: nested mappings recurse, any other
value replaces the leaf it names.  Keys may be given in snake_case or in the
camelCase used by the application layer.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

# camelCase spellings that don't survive a mechanical conversion
_KEY_ALIASES = {
    "use_tcpmode": "use_tcp_mode",
    "consolidate_g_codes": "consolidate_gcodes",
    "use_compact_g_code": "use_compact_gcode",
    "use_modal_g_codes": "use_modal_gcodes",
    "use_radius_compensation3_d": "use_radius_compensation_3d",
    "use_radius_compensation3d": "use_radius_compensation_3d",
}


def normalize_key(key: str) -> str:
    """``useTCPMode`` -> ``use_tcp_mode``; snake_case passes through."""
    snake = _CAMEL_BOUNDARY.sub("_", key)
    snake = re.sub(r"(?<=[A-Z])(?=[A-Z][a-z])", "_", snake).lower()
    return _KEY_ALIASES.get(snake, snake)


@dataclass
class FanucOptions:
    use_decimal_format: bool = True
    use_modal_gcodes: bool = True
    use_ai: bool = False                   # AI contour control (G05.1 Q1)
    use_nano_smoothing: bool = False       # G05.1 Q3
    use_corner_rounding: bool = False
    use_high_precision_mode: bool = False  # G61.1 instead of G64 P0.05
    use_compact_gcode: bool = True


@dataclass
class HeidenhainOptions:
    use_conversational_format: bool = True
    use_function_blocks: bool = True
    use_cycle_define: bool = True
    use_parameter_programming: bool = False
    use_tcp: bool = False
    use_radius_compensation_3d: bool = False
    use_smart_turning: bool = True


_SECTIONS = {"fanuc": FanucOptions, "heidenhain": HeidenhainOptions}


@dataclass
class OptimizationOptions:
    """Switches controlling every post-processing path."""

    remove_redundant_moves: bool = True
    remove_redundant_codes: bool = True
    optimize_rapid_moves: bool = True
    optimize_toolpaths: bool = True
    optimize_feedrates: bool = True
    use_high_speed_mode: bool = False
    use_look_ahead: bool = True
    use_tcp_mode: bool = False
    use_arc_optimization: bool = True
    consolidate_gcodes: bool = True
    remove_empty_lines: bool = True
    remove_comments: bool = False
    minimize_axis_movement: bool = True
    safety_checks: bool = True

    # Either may be replaced wholesale by a non-mapping value in from_dict
    fanuc: Optional[FanucOptions] = field(default_factory=FanucOptions)
    heidenhain: Optional[HeidenhainOptions] = field(default_factory=HeidenhainOptions)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, overrides: Optional[dict[str, Any]] = None) -> OptimizationOptions:
        """Deep-merge *overrides* over the defaults."""
        merged = _merge(cls().to_dict(), _normalize(overrides or {}), path="")
        kwargs: dict[str, Any] = {}
        for name, value in merged.items():
            section = _SECTIONS.get(name)
            if section is not None and isinstance(value, dict):
                value = section(**value)
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Path) -> OptimizationOptions:
        """Read overrides from a JSON file; a missing file means defaults."""
        if not path.exists():
            return cls()
        data = json.loads(path.read_text())
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object, got {type(data).__name__}")
        return cls.from_dict(data)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2))


OptionsLike = Union[OptimizationOptions, dict, None]


def coerce_options(options: OptionsLike) -> OptimizationOptions:
    if options is None:
        return OptimizationOptions()
    if isinstance(options, dict):
        return OptimizationOptions.from_dict(options)
    return options


# ---- merge helpers ----------------------------------------------------------


def _normalize(d: dict[str, Any]) -> dict[str, Any]:
    """Normalize key spelling and lift ``controller_specific`` sections."""
    out: dict[str, Any] = {}
    for key, value in d.items():
        name = normalize_key(key)
        if name == "controller_specific" and isinstance(value, dict):
            out.update(_normalize(value))
            continue
        out[name] = _normalize(value) if isinstance(value, dict) else value
    return out


def _merge(base: dict[str, Any], overrides: dict[str, Any], path: str) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if key not in base:
            logger.warning("Ignoring unknown option %r", f"{path}{key}")
            continue
        current = base[key]
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge(current, value, path=f"{path}{key}.")
        else:
            merged[key] = value
    return merged

