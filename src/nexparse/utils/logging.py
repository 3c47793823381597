"""
Logging for nexparse runs.

A parse started from the command line gets its own log file in a 'logs'
directory beside the NEXUS file, named nexparse_{input_name}_{timestamp}.log.
Only the newest KEEP_LOGS files with that prefix survive a new run.

Library code logs through NexusLogger at any time. Before setup_logger() has
been called the messages simply go to the 'nexparse' logger, so applications
embedding the parser (and pytest's caplog) receive them through their own
logging configuration.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

LOGGER_NAME = "nexparse"
LOG_PREFIX = "nexparse_"
KEEP_LOGS = 5
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class NexusLogger:
    """Class-level logger shared by the tokenizer, sections and CLI"""

    _logger: Optional[logging.Logger] = None
    _current_log_file: Optional[Path] = None

    @classmethod
    def _remove_handlers(cls) -> None:
        if cls._logger is None:
            return
        for handler in cls._logger.handlers[:]:
            cls._logger.removeHandler(handler)
            handler.close()

    @staticmethod
    def _prune_logs(logs_dir: Path, keep: int = KEEP_LOGS) -> None:
        """Delete all but the newest keep nexparse log files in logs_dir"""
        newest_first = sorted(
            logs_dir.glob(f"{LOG_PREFIX}*.log"), key=lambda p: p.stat().st_mtime, reverse=True
        )
        for stale in newest_first[keep:]:
            try:
                stale.unlink()
            except OSError as e:
                logging.getLogger(LOGGER_NAME).debug(f"Could not remove {stale}: {e}")

    @classmethod
    def setup_logger(
        cls, file_path: str, log_level: int = logging.INFO, console_level: int = logging.WARNING
    ) -> logging.Logger:
        """
        Start a log file for parsing file_path.

        Args:
            file_path: NEXUS file about to be read
            log_level: Level written to the log file
            console_level: Level echoed to stderr

        Returns:
            The configured 'nexparse' logger
        """
        input_path = Path(file_path)
        logs_dir = input_path.parent / "logs"
        logs_dir.mkdir(exist_ok=True)

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:17]
        log_path = logs_dir / f"{LOG_PREFIX}{input_path.stem}_{stamp}.log"

        cls._remove_handlers()
        cls._logger = logging.getLogger(LOGGER_NAME)
        cls._logger.setLevel(log_level)

        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        for handler, level in (
            (logging.FileHandler(log_path, mode="w", encoding="utf-8"), log_level),
            (logging.StreamHandler(), console_level),
        ):
            handler.setLevel(level)
            handler.setFormatter(formatter)
            cls._logger.addHandler(handler)

        cls._current_log_file = log_path
        cls._logger.info(f"Reading NEXUS file: {file_path}")
        cls._logger.info(f"Log file: {log_path}")

        # After creating the new file so that it counts towards the limit
        cls._prune_logs(logs_dir)
        return cls._logger

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return cls._logger or logging.getLogger(LOGGER_NAME)

    @classmethod
    def get_log_file_path(cls) -> Optional[Path]:
        """Log file of the current run, None when not set up"""
        return cls._current_log_file

    @classmethod
    def info(cls, message: str) -> None:
        cls.get_logger().info(message)

    @classmethod
    def warning(cls, message: str) -> None:
        cls.get_logger().warning(message)

    @classmethod
    def error(cls, message: str) -> None:
        cls.get_logger().error(message)

    @classmethod
    def debug(cls, message: str) -> None:
        cls.get_logger().debug(message)

    @classmethod
    def success(cls, message: str) -> None:
        """Info-level message marking a completed step"""
        cls.get_logger().info(f"✅ {message}")

    @classmethod
    def cleanup(cls) -> None:
        """Close the run's handlers and forget the log file"""
        cls._remove_handlers()
        cls._logger = None
        cls._current_log_file = None
