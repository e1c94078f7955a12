"""Logging configuration for fabricnet.

Provides configurable logging with:
- File-based logging with rotation
- Console output for real-time debugging
- Timing decorators for controller round-trips

Environment Variables:
    FABRICNET_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    FABRICNET_LOG_FILE: Path to log file (default: ~/.fabricnet/fabricnet.log)
    FABRICNET_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    FABRICNET_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from fabric_network.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("get_network")
    async def get_network(self, fabric, name):
        ...
"""
import functools
import inspect
import logging
import os
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("fabricnet.perf")


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("FABRICNET_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".fabricnet" / "fabricnet.log"
    path_str = os.environ.get("FABRICNET_LOG_FILE", str(default_path))
    return Path(path_str)


def setup_logging() -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler (INFO+ by default, respects FABRICNET_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)
    - Performance logger for REST call timings
    """
    log_level = get_log_level()
    log_file = get_log_file()
    max_size_mb = int(os.environ.get("FABRICNET_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("FABRICNET_LOG_BACKUPS", "5"))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-32s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    perf_log_file = log_file.parent / "fabricnet-perf.log"
    perf_handler = RotatingFileHandler(
        perf_log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)

    # Package modules log under "fabric_network.*", shared loggers under "fabricnet.*"
    for name in ("fabricnet", "fabric_network"):
        pkg_logger = logging.getLogger(name)
        pkg_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
        pkg_logger.addHandler(console_handler)
        pkg_logger.addHandler(file_handler)

    perf_logger.setLevel(logging.DEBUG)
    perf_logger.addHandler(perf_handler)
    perf_logger.propagate = False

    logging.getLogger("fabricnet").info(
        f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}"
    )
    perf_logger.info(f"Performance logging to: {perf_log_file}")


def _target_of(args: tuple, target: Optional[str]) -> str:
    if target is not None:
        return target
    if args and hasattr(args[0], "target_id"):
        return args[0].target_id
    return "N/A"


def _perf_line(operation: str, target: str, started: float, outcome: str) -> str:
    elapsed = (time.perf_counter() - started) * 1000  # ms
    return f"{operation:20s} | {target:20s} | {elapsed:8.2f}ms | {outcome}"


def timed(operation: str, target: Optional[str] = None):
    """Decorator to log the round-trip time of an async controller call.

    Failures are logged with the HTTP status when the error carries one.

    Args:
        operation: Name of the operation (e.g., "get_network", "deploy")
        target: Optional controller identifier (inferred from self.target_id)
    """
    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"@timed({operation!r}) needs a coroutine function")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            tgt = _target_of(args, target)
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                status = getattr(e, "status_code", None)
                outcome = f"FAIL[{status}]: {e}" if status else f"FAIL: {e}"
                perf_logger.warning(_perf_line(operation, tgt, start, outcome))
                raise
            perf_logger.info(_perf_line(operation, tgt, start, "OK"))
            return result

        return wrapper

    return decorator
