import logging
import sys

# Custom levels used by the zipper pipeline
TRACE_LEVEL = 5
PROGRESS_LEVEL = 22
SUCCESS_LEVEL = 25

logging.addLevelName(TRACE_LEVEL, "TRACE")
logging.addLevelName(PROGRESS_LEVEL, "PROGRESS")
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the whole record by level when writing to a terminal."""

    COLORS = {
        "TRACE": "\033[90m",  # Gray
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "PROGRESS": "\033[94m",  # Bright Blue
        "SUCCESS": "\033[92m",  # Bright Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str = None, datefmt: str = None, use_color: bool = None):
        super().__init__(fmt, datefmt)
        self.use_color = use_color

    def _should_color(self) -> bool:
        if self.use_color is not None:
            return self.use_color
        return sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        if self._should_color():
            level_color = self.COLORS.get(record.levelname, "")
            return f"{level_color}{message}{self.COLORS['RESET']}"

        return message


def setup_colored_logging(level: int = logging.INFO) -> None:
    """
    Configure the root logger with a single colored stderr handler.

    Library modules never call this; it is meant for entry points such as
    the command-line tool.

    Args:
        level: Logging level (default: logging.INFO)
    """
    formatter = ColoredFormatter(
        fmt="%(asctime)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


class EnhancedLogger:
    """Logger wrapper adding the trace, progress and success levels."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def trace(self, msg, *args, **kwargs):
        """Very detailed debugging output, e.g. individual chunk writes."""
        self._logger.log(TRACE_LEVEL, msg, *args, **kwargs)

    def progress(self, msg, *args, **kwargs):
        """Per-file progress while an archive is being written."""
        self._logger.log(PROGRESS_LEVEL, msg, *args, **kwargs)

    def success(self, msg, *args, **kwargs):
        """Completed operations."""
        self._logger.log(SUCCESS_LEVEL, msg, *args, **kwargs)

    # Standard methods (debug, info, warning, ...) come from the wrapped logger
    def __getattr__(self, name):
        return getattr(self._logger, name)


def get_colored_logger(name: str) -> EnhancedLogger:
    """
    Get an enhanced logger for the given module name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        EnhancedLogger wrapping ``logging.getLogger(name)``
    """
    return EnhancedLogger(logging.getLogger(name))
