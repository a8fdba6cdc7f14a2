from __future__ import annotations

"""Logging set-up for the DraftCrane footnote tools.

Call :func:`setup_logging` once at start-up; the CLI does so before reading
any document. The packaged ``logging.yml`` (plus user overrides, see
:mod:`draftcrane_footnotes.config`) goes through ``logging.config.dictConfig``
with every file handler redirected into one log directory:

- ``log_dir`` argument, else ``$DRAFTCRANE_LOG_DIR``, else ``./logs``

When the configuration is missing or rejected a console-only fallback is
installed instead. Two environment switches raise individual loggers to DEBUG
without editing YAML:

- ``DRAFTCRANE_DEBUG_FOOTNOTES=1``  corrector, editor session, footnote service
- ``DRAFTCRANE_DEBUG_MODULES=a.b,c.d``  any comma-separated logger names
"""

from copy import deepcopy
import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from draftcrane_footnotes.config import ConfigManager

__all__ = ["setup_logging", "FOOTNOTE_LOGGERS"]

FOOTNOTE_LOGGERS = (
    "draftcrane_footnotes.core.footnotes.corrector",
    "draftcrane_footnotes.core.services.editor_service",
    "draftcrane_footnotes.core.services.footnote_service",
)

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_TRUTHY = {"1", "true", "yes", "on"}

_FALLBACK_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {"simple": {"format": _FORMAT}},
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple", "level": "INFO"},
    },
    "root": {"level": "INFO", "handlers": ["console"]},
}


def setup_logging(log_dir: Optional[str] = None) -> Optional[Path]:
    """Configure logging; return the main log file, or None without one."""
    directory = Path(log_dir or os.environ.get("DRAFTCRANE_LOG_DIR", "logs"))
    config = deepcopy(ConfigManager().get_logging_config())

    log_file: Optional[Path] = None
    configured = False
    if isinstance(config, dict) and config.get("version"):
        log_file = _redirect_file_handlers(config, directory)
        try:
            logging.config.dictConfig(config)
            configured = True
        except (ValueError, TypeError, AttributeError, ImportError) as exc:
            # dictConfig reports bad sections as ValueError
            print(f"Error loading logging config: {exc}")
            log_file = None

    if configured:
        logging.getLogger(__name__).info("Logging initialised, file=%s", log_file)
    else:
        logging.config.dictConfig(_FALLBACK_CONFIG)
        logging.getLogger(__name__).error("Logging initialised with console fallback")

    for name in _debug_targets(os.environ):
        _enable_debug(name)
    return log_file


def _redirect_file_handlers(config: Dict[str, Any], directory: Path) -> Optional[Path]:
    """Point every handler with a ``filename`` into *directory*; return the first."""
    first: Optional[Path] = None
    for handler in (config.get("handlers") or {}).values():
        if not isinstance(handler, dict) or "filename" not in handler:
            continue
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / Path(str(handler["filename"])).name
        handler["filename"] = str(target)
        if first is None:
            first = target
    return first


def _debug_targets(environ: Mapping[str, str]) -> List[str]:
    """Logger names the environment asks to run at DEBUG, without duplicates."""
    names: List[str] = []
    if environ.get("DRAFTCRANE_DEBUG_FOOTNOTES", "").strip().lower() in _TRUTHY:
        names.extend(FOOTNOTE_LOGGERS)
    for raw in environ.get("DRAFTCRANE_DEBUG_MODULES", "").split(","):
        name = raw.strip()
        if name and name not in names:
            names.append(name)
    return names


def _enable_debug(name: str) -> None:
    target = logging.getLogger(name)
    target.setLevel(logging.DEBUG)
    # root handlers usually filter at WARNING/INFO
    if not any(h.level <= logging.DEBUG for h in target.handlers):
        handler = logging.StreamHandler()
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(_FORMAT))
        target.addHandler(handler)
    target.debug("Debug override active")
