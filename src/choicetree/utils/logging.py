from __future__ import annotations
import logging
from functools import wraps
from typing import Any, Callable

from choicetree.errors import ExhaustionLimit


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    """Route choicetree log records to stderr; quiet unless asked."""
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")
    logging.getLogger("choicetree").setLevel(level)


def log_calls(logger_name: str | None = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator tracing entry and exit of an exploration entry point at DEBUG level."""

    def _decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = logger_name or func.__module__
        logger = logging.getLogger(name)

        @wraps(func)
        def _wrapper(*args: Any, **kwargs: Any) -> Any:
            target = getattr(args[0], "__name__", repr(args[0])) if args else None
            logger.debug("Calling %s target=%s kwargs=%s", func.__name__, target, kwargs)
            try:
                result = func(*args, **kwargs)
            except ExhaustionLimit as limit:
                # Recoverable: the caller asked for the cap
                logger.warning("%s stopped early: %s", func.__name__, limit)
                raise
            except Exception as e:
                logger.exception("Error in %s: %s", func.__name__, e)
                raise
            logger.debug("%s returned %s", func.__name__, type(result).__name__)
            return result

        return _wrapper

    return _decorator
