"""Logging setup: console output plus one log file per package component.

Records from ``refsession.auth.*`` go to ``auth.log``, records from
``refsession.api.*`` to ``api.log`` and everything else to ``main.log``.
Every handler masks session tokens before writing.
"""

import logging
import re
import sys
from pathlib import Path
from typing import Optional


# (logger name fragment, component) pairs, first match wins
COMPONENT_PREFIXES = [
    ('refsession.auth', 'auth'),
    ('refsession.api', 'api'),
]
DEFAULT_COMPONENT = 'main'

LOG_FILE_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
CONSOLE_FORMAT = '[%(levelname)s] %(message)s'

NOISY_LOGGERS = ("urllib3", "playwright")


def component_for(logger_name: str) -> str:
    """Map a logger name such as 'refsession.auth.submitter' to its component."""
    for prefix, component in COMPONENT_PREFIXES:
        if logger_name.startswith(prefix):
            return component
    return DEFAULT_COMPONENT


def components() -> list:
    return [component for _, component in COMPONENT_PREFIXES] + [DEFAULT_COMPONENT]


class ComponentFilter(logging.Filter):
    """Passes only records belonging to one component."""

    def __init__(self, component: str):
        super().__init__()
        self.component = component

    def filter(self, record: logging.LogRecord) -> bool:
        return component_for(record.name) == self.component


# Token attributes and headers whose values must not reach log output
_SENSITIVE_PATTERNS = [
    re.compile(r'(data-(?:csrf|session)-token=["\'])([^"\']+)(["\'])'),
    re.compile(r'(X-Session-Token["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)()', re.IGNORECASE),
]


class SensitiveDataFilter(logging.Filter):
    """Masks session tokens in log messages, including HTML body previews."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = message
        for pattern in _SENSITIVE_PATTERNS:
            redacted = pattern.sub(r'\1***\3', redacted)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _component_file_handler(log_directory: Path, component: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(log_directory / f'{component}.log', mode='a', encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    handler.addFilter(ComponentFilter(component))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_to_console: bool = True,
    log_dir: Optional[Path] = None
) -> None:
    """Install console and per-component file handlers on the root logger.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        log_to_console: Also log to stdout (default: True)
        log_dir: Directory for the component log files (default: ./logs)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    log_directory = Path(log_dir or './logs')
    log_directory.mkdir(parents=True, exist_ok=True)

    handlers = [_component_file_handler(log_directory, component, level) for component in components()]

    # Console stays quiet below WARNING unless debugging
    if log_to_console:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.DEBUG if level == logging.DEBUG else logging.WARNING)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        handlers.append(console)

    redaction = SensitiveDataFilter()
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        handler.addFilter(redaction)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
