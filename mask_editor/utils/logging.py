"""
Logging utilities
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Image decoders that trace every chunk they parse
LIBRARY_LOGGERS = ('PIL', 'tifffile')


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    library_level: int = logging.WARNING,
    libraries: Iterable[str] = LIBRARY_LOGGERS
) -> logging.Logger:
    """
    Send editor logs to stdout and, when given, append them to `log_file`.

    Decoder libraries log at `library_level` or at `level`, whichever is
    stricter, so `--debug` keeps showing editor traces only.
    Returns the `mask_editor` package logger.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(_handler(logging.StreamHandler(sys.stdout), level))

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(
            _handler(logging.FileHandler(log_file, mode='a', encoding='utf-8'), level)
        )

    for name in libraries:
        logging.getLogger(name).setLevel(max(level, library_level))

    editor_logger = logging.getLogger('mask_editor')
    editor_logger.setLevel(level)
    return editor_logger
