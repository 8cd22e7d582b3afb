# File: silverfish/logger.py
"""silverfish.logger: общий логгер краулера.

Модули пишут в ``from silverfish.logger import logger``; CLI вызывает
:func:`init_logging` с уровнем, файлом и форматом из опций командной строки.
Консоль всегда stdout, файл (если задан) ротируется по 5 МБ, 3 копии.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOGGER_NAME = "Silverfish"
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
_LOG_FILE_BACKUPS = 3


def _build_handlers(log_file: Optional[Union[str, Path]]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(
                str(log_file),
                maxBytes=_LOG_FILE_MAX_BYTES,
                backupCount=_LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )
    return handlers


def configure(
    *,
    level: Union[int, str] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Заменяет обработчики логгера Silverfish новыми.

    Старые обработчики закрываются: повторный вызов (тесты CLI, новый
    запуск) не дублирует строки и не держит открытым прежний файл.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    for old in list(lg.handlers):
        lg.removeHandler(old)
        old.close()

    formatter = logging.Formatter(log_format)
    for handler in _build_handlers(log_file):
        handler.setFormatter(formatter)
        lg.addHandler(handler)

    lg.propagate = False
    return lg


def init_logging(
    level: Union[int, str] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    return configure(level=level, log_file=log_file, log_format=log_format)


logger: logging.Logger = init_logging()

__all__ = ["DEFAULT_FORMAT", "LOGGER_NAME", "configure", "init_logging", "logger"]
