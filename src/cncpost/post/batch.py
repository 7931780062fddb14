"""Post-process several independent programs on a thread pool."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from ..config.options import OptionsLike
from .processor import ControllerLike, PostProcessor
from .result import OptimizationResult

logger = logging.getLogger(__name__)


def process_many(
    programs: Iterable[str],
    controller: ControllerLike,
    options: OptionsLike = None,
    max_workers: Optional[int] = None,
) -> list[OptimizationResult]:
    """Results come back in the order of *programs*.

    Each program is processed independently; a failure in one is reported
    in its own result and does not affect the others.
    """
    processor = PostProcessor(controller, options)
    programs = list(programs)
    if not programs:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(processor.process_gcode, programs))
    logger.info("Post-processed %d program(s) for %s", len(results), processor.profile.display_name)
    return results
