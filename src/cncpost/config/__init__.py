"""Defaults, option switches and controller profiles."""

from .controllers import ControllerProfile, ControllerType, Dialect, get_profile, list_profiles
from .options import FanucOptions, HeidenhainOptions, OptimizationOptions

__all__ = [
    "ControllerProfile",
    "ControllerType",
    "Dialect",
    "FanucOptions",
    "HeidenhainOptions",
    "OptimizationOptions",
    "get_profile",
    "list_profiles",
]
