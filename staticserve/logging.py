import logging
from typing import Optional
from rich.console import Console
from rich.logging import RichHandler

_console: Optional[Console] = None


def setup_logging(level: str = "WARNING") -> None:
    """Route the package's loggers to a rich console.

    Safe to call more than once; the last call's level wins.
    """
    global _console
    _console = _console or Console()
    logger = logging.getLogger("staticserve")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    for h in list(logger.handlers):
        if isinstance(h, RichHandler):
            logger.removeHandler(h)
    handler = RichHandler(
        console=_console, markup=False, rich_tracebacks=True, log_time_format="[%X]"
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)


def get_console() -> Console:
    global _console
    if _console is None:
        _console = Console()
    return _console
