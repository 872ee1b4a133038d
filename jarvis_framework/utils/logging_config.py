"""
Structured logging for the voice conversation framework.

Every record carries the component that produced it (capture, response, tts,
playback, orchestrator, ...). Console lines look like:

    [12:04:31.512] INFO     🎤 capture      | Capture started (session 3)
"""

import functools
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER_NAME = 'jarvis_framework'

# Chatty client libraries, kept at WARNING unless running at DEBUG
NOISY_LOGGERS = ('aiohttp.access', 'openai', 'httpx', 'httpcore')


class StructuredFormatter(logging.Formatter):
    """Aligned timestamp / level / component / message columns."""

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    COMPONENT_ICONS = {
        'capture': '🎤',
        'response': '🧠',
        'tts': '🗣️',
        'playback': '🔊',
        'orchestrator': '🤖',
        'state': '🔁',
        'relisten': '⏱️',
        'settings': '⚙️',
        'errors': '❗',
    }

    def __init__(self, use_colors: bool = True, use_emojis: bool = True):
        super().__init__()
        self.use_colors = use_colors
        self.use_emojis = use_emojis

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S.%f')[:-3]

        level = f"{record.levelname:8}"
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}{self.RESET}"

        component = getattr(record, 'component', record.name.rsplit('.', 1)[-1])
        if self.use_emojis:
            component = f"{self.COMPONENT_ICONS.get(component, '•')} {component:12}"
        else:
            component = f"{component:12}"

        line = f"[{timestamp}] {level} {component} | {record.getMessage()}"
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


class ComponentLogger(logging.LoggerAdapter):
    """Adapter that stamps each record with its component name."""

    def __init__(self, logger: logging.Logger, component: str):
        super().__init__(logger, {'component': component})
        self.component = component

    def process(self, msg, kwargs):
        extra = dict(kwargs.get('extra') or {})
        extra.setdefault('component', self.component)
        kwargs['extra'] = extra
        return msg, kwargs


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
    use_colors: bool = True,
    use_emojis: bool = True
) -> logging.Logger:
    """
    Configure the framework logger.

    Console output gets colors only when stdout is a terminal; the optional
    log file is always plain text.

    Args:
        level: Level name (DEBUG, INFO, ...) or number
        log_file: Also append records to this file
        use_colors: ANSI level colors on the console
        use_emojis: Component icons on the console

    Returns:
        The configured framework logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter(
        use_colors=use_colors and sys.stdout.isatty(),
        use_emojis=use_emojis
    ))
    logger.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(StructuredFormatter(use_colors=False, use_emojis=False))
        logger.addHandler(file_handler)

    quiet_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    return logger


@functools.lru_cache(maxsize=None)
def get_logger(component: str) -> ComponentLogger:
    """Return the shared logger for a component (e.g. "capture", "playback")."""
    return ComponentLogger(logging.getLogger(ROOT_LOGGER_NAME), component)
