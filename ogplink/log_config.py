import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from ogplink.config import Settings

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(fmt=JSON_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(TEXT_FORMAT, DATE_FORMAT)


def configure_logging(settings: Settings) -> None:
    """Install a single stdout handler on the root logger.

    Calling this again (e.g. on reload) replaces the handler instead of
    stacking a second one.
    """
    root = logging.getLogger()
    root.setLevel(settings.log_level)

    for handler in list(root.handlers):
        if getattr(handler, "_ogplink", False):
            root.removeHandler(handler)

    console = logging.StreamHandler(stream=sys.stdout)
    console.setFormatter(_build_formatter(settings.log_format))
    console._ogplink = True  # type: ignore[attr-defined]
    root.addHandler(console)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
