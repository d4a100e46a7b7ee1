"""
Logging setup for the SkillMatch API.

One dictConfig per process, chosen by ENVIRONMENT. Everything logs under the
"skillmatch" namespace; uvicorn and the noisier client libraries are attached
to the same handlers at their own levels.
"""
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

ROOT_LOGGER = "skillmatch"

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-34s | %(funcName)-22s:%(lineno)-4d | %(message)s",
}

# name -> (level, console, file, format); LOG_LEVEL overrides the level
PROFILES = {
    "production": ("INFO", True, True, "detailed"),
    "development": ("DEBUG", True, True, "detailed"),
    "testing": ("WARNING", True, False, "simple"),
}

LIBRARY_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    "pymongo": "WARNING",
    "urllib3": "WARNING",
    "httpx": "WARNING",
    "pdfminer": "ERROR",
}

MAX_LOG_BYTES = 10 * 1024 * 1024


def _rotating_file(path: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 5,
        "encoding": "utf8",
    }


def build_config(level: str = "INFO", console: bool = True, to_file: bool = True,
                 fmt: str = "detailed", log_dir: Path = None) -> Dict[str, Any]:
    """Build the dictConfig for one profile. Creates log_dir when file output is on."""
    handlers: Dict[str, Any] = {}
    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": fmt if fmt in FORMATS else "detailed",
            "stream": "ext://sys.stdout",
        }
    if to_file:
        log_dir = log_dir or Path(os.getenv("LOG_DIR", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d")
        handlers["file"] = _rotating_file(log_dir / f"skillmatch_{stamp}.log", level)
        handlers["error_file"] = _rotating_file(log_dir / f"skillmatch_errors_{stamp}.log", "ERROR")

    names: List[str] = list(handlers)
    loggers: Dict[str, Any] = {
        "": {"level": level, "handlers": names},
        # library loggers reuse the root handlers but keep their own threshold
        **{lib: {"level": lib_level, "handlers": names, "propagate": False}
           for lib, lib_level in LIBRARY_LEVELS.items()},
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {name: {"format": f, "datefmt": "%Y-%m-%d %H:%M:%S"} for name, f in FORMATS.items()},
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging(level: str = "INFO", console: bool = True, to_file: bool = True, fmt: str = "detailed") -> None:
    logging.config.dictConfig(build_config(level, console, to_file, fmt))
    get_logger("logging").info(f"Logging configured - Level: {level}, Console: {console}, File: {to_file}")


def configure_for_environment() -> str:
    """Apply the profile named by ENVIRONMENT and return its name."""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    level, console, to_file, fmt = PROFILES.get(environment, PROFILES["production"])
    if environment != "development":
        level = os.getenv("LOG_LEVEL", level).upper()
    setup_logging(level, console, to_file, fmt)
    return environment


def get_logger(name: str) -> logging.Logger:
    """Logger under the skillmatch namespace, e.g. get_logger(__name__)."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


class PerformanceMonitor:
    """Times a block and logs it; slow blocks log a warning, failures an error."""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.elapsed_ms = None
        self._start = None

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000
        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} took {self.elapsed_ms:.2f}ms (threshold {self.threshold_ms}ms)"
            )
        else:
            self.logger.debug(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms")
        return False
