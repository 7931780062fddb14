"""Post-processor dispatcher.

``PostProcessor`` binds a controller profile to a set of optimization
options and routes programs to the matching dialect path.  Processing is
fail-soft: an exception inside a path is logged and the caller gets the
untouched program back with the failure recorded in the result.
"""

from __future__ import annotations

import logging
from typing import Callable, Union

from ..config.controllers import ControllerProfile, ControllerType, Dialect, get_profile
from ..config.defaults import MAX_PROGRAM_LINES
from ..config.options import OptimizationOptions, OptionsLike, coerce_options
from ..errors import ProgramTooLargeError
from .fanuc import process_fanuc
from .generic import process_generic
from .heidenhain import process_heidenhain
from .result import OptimizationResult, count_lines

logger = logging.getLogger(__name__)

ControllerLike = Union[ControllerType, str]

_PATHS: dict[Dialect, Callable[[str, OptimizationOptions, ControllerProfile], OptimizationResult]] = {
    Dialect.FANUC: process_fanuc,
    Dialect.HEIDENHAIN: process_heidenhain,
    Dialect.GENERIC: process_generic,
}


class PostProcessor:
    """Controller-specific post-processing of generated G-code.

    Parameters
    ----------
    controller : ControllerType or str
        Target controller; an unknown name raises ``ValueError``.
    options : OptimizationOptions, dict or None
        Switches; a dict is deep-merged over the defaults.
    max_lines : int
        Programs longer than this are rejected (reported as a failure).
    """

    def __init__(
        self,
        controller: ControllerLike,
        options: OptionsLike = None,
        *,
        max_lines: int = MAX_PROGRAM_LINES,
    ):
        self.profile = get_profile(controller)
        self._options = options
        self.max_lines = max_lines

    @property
    def controller(self) -> ControllerType:
        return self.profile.controller

    @property
    def options(self) -> OptimizationOptions:
        """Options merged over the defaults; a malformed dict raises here."""
        if not isinstance(self._options, OptimizationOptions):
            self._options = coerce_options(self._options)
        return self._options

    def process_gcode(self, code: str) -> OptimizationResult:
        """Optimize *code* for the bound controller.

        Never raises: any failure yields ``OptimizationResult.failed`` with
        the original code.
        """
        try:
            options = self.options
            lines = count_lines(code)
            if lines > self.max_lines:
                raise ProgramTooLargeError(lines, self.max_lines)
            path = _PATHS[self.profile.dialect]
            logger.debug("Post-processing %d lines for %s", lines, self.profile)
            return path(code, options, self.profile)
        except Exception as exc:
            logger.exception("Post-processing for %s failed", self.profile.display_name)
            return OptimizationResult.failed(code, exc)

    def __repr__(self) -> str:
        return f"PostProcessor({self.controller.value!r}, max_lines={self.max_lines})"


def create_post_processor(controller: ControllerLike, options: OptionsLike = None) -> PostProcessor:
    return PostProcessor(controller, options)


def create_fanuc_post_processor(options: OptionsLike = None) -> PostProcessor:
    return PostProcessor(ControllerType.FANUC, options)


def create_heidenhain_post_processor(options: OptionsLike = None) -> PostProcessor:
    return PostProcessor(ControllerType.HEIDENHAIN, options)


def process_gcode(
    code: str,
    controller: ControllerLike,
    options: OptionsLike = None,
) -> OptimizationResult:
    """One-shot post-processing of *code* for *controller*."""
    return PostProcessor(controller, options).process_gcode(code)
