# Mazegen Core module

import logging

from . import scheduler

logger = logging.getLogger(__name__)


def register() -> None:
    """Register core components."""
    # Generators are plain service objects; nothing to register with Blender.
    pass


def unregister() -> None:
    """Cancel generation passes still driven by Blender timers."""
    cancelled = scheduler.cancel_all_tasks()
    if cancelled:
        logger.info(f"Cancelled {cancelled} in-flight maze generation task(s)")
