import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

LOG_DIR = Path(os.getenv("OURPLANET_LOG_DIR", "logs"))
LOG_FILE = LOG_DIR / "ourplanet.log"

PACKAGE_PREFIX = "ourplanet."

FILE_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
TTY_FMT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PLAIN_FMT = "%(levelname)s %(name)s: %(message)s"

RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[2m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}


class ConsoleFormatter(logging.Formatter):
    """
    Console output: drops the ``ourplanet.`` prefix from logger names and,
    when ``color`` is set, tints the level name.
    """

    def __init__(self, fmt: str, *, color: bool) -> None:
        super().__init__(fmt, datefmt="%H:%M:%S")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        orig_levelname = record.levelname
        orig_name = record.name
        try:
            if record.name.startswith(PACKAGE_PREFIX):
                record.name = record.name[len(PACKAGE_PREFIX):]
            if self.color:
                tint = LEVEL_COLORS.get(record.levelno, RESET)
                record.levelname = f"{tint}{orig_levelname:<7}{RESET}"
            return super().format(record)
        finally:
            record.levelname = orig_levelname
            record.name = orig_name


def _resolve_log_level(default: int = logging.INFO) -> int:
    level = os.getenv("LOG_LEVEL")
    if not level:
        return default
    return getattr(logging, level.upper(), default)


def _console_is_tty() -> bool:
    if os.getenv("NO_COLOR"):
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def setup_logger(
    name: str,
    level: int | None = None,
) -> logging.Logger:
    level = level if level is not None else _resolve_log_level()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    # stderr keeps stdout free for the CLI's progress line and table
    tty = _console_is_tty()
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter(TTY_FMT if tty else PLAIN_FMT, color=tty))
    logger.addHandler(console)

    if os.getenv("OURPLANET_LOG_FILE", "1") != "0":
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=2_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FMT))
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger
