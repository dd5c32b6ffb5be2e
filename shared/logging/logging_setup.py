"""Console and file logging for the ingestion runner and the knowledge core.

Environment:
    LOG_LEVEL  "debug" enables debug output, anything else logs at info.
    LOG_DIR    directory of knowledge_core.log, defaults to "<cwd>/logs".
    TIMEZONE   zone of the timestamps, defaults to "UTC".
"""

from datetime import datetime
import logging
import logging.config
import os

from pytz import timezone

ANSI_RESET = "\033[0m"
ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
    "white": "\033[37m",
}
LEVEL_COLORS = {logging.WARNING: "yellow", logging.ERROR: "red", logging.CRITICAL: "red"}
LEVEL_MARKERS = {logging.WARNING: "⚠️ ", logging.ERROR: "⛔ ", logging.CRITICAL: "⛔ "}

# only useful when debugging the core itself
QUIET_LOGGERS = ("httpx", "httpcore", "pypdf", "sqlalchemy.engine", "asyncio")


def is_debug() -> bool:
    return os.getenv("LOG_LEVEL", "info").lower() == "debug"


class ZonedFormatter(logging.Formatter):
    """Renders timestamps in a pytz zone and marks warnings and errors."""

    def __init__(self, tz_name: str = "UTC", *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        moment = datetime.fromtimestamp(record.created, self.tz)
        return moment.strftime(datefmt) if datefmt else moment.isoformat()

    def format(self, record):
        marker = LEVEL_MARKERS.get(record.levelno, "")
        if not marker:
            return super().format(record)
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)
        # handlers share the record, so mark a copy
        marked = logging.makeLogRecord(record.__dict__)
        marked.msg = marker + message
        marked.args = ()
        return super().format(marked)


class ConsoleFormatter(ZonedFormatter):
    """Colours a line by its explicit color= name, falling back to the level colour."""

    def format(self, record):
        line = super().format(record)
        color = getattr(record, "color", None) or LEVEL_COLORS.get(record.levelno)
        ansi = ANSI_COLORS.get(color or "")
        return f"{ansi}{line}{ANSI_RESET}" if ansi else line


class ColorLogger(logging.LoggerAdapter):
    """Logger adapter accepting an optional color= keyword on every log call.

        logger.info("Document %s indexed", document_id, color="green")

    The colour only reaches the console handler; the log file stays plain.
    """

    def __init__(self, logger: logging.Logger):
        super().__init__(logger, {})

    def process(self, msg, kwargs):
        color = kwargs.pop("color", None)
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        return msg, kwargs


def build_logging_config(log_file: str, tz_name: str, level: int) -> dict:
    formatter_options = {"datefmt": "%Y-%m-%d %H:%M:%S", "tz_name": tz_name}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "file": {
                "()": ZonedFormatter,
                "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                **formatter_options,
            },
            "console": {
                "()": ConsoleFormatter,
                "format": "%(asctime)s - %(levelname)s - %(message)s",
                **formatter_options,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": level,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "file",
                "level": level,
                "filename": log_file,
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": level},
    }


def setup_logging(name: str = "knowledge_core") -> ColorLogger:
    """Configure the root logger and return the application logger.

    Args:
        name (str): Name of the application logger.

    Returns:
        ColorLogger: The application logger wrapped for color= support.
    """
    debug = is_debug()
    level = logging.DEBUG if debug else logging.INFO
    log_dir = os.getenv("LOG_DIR") or os.path.join(os.getcwd(), "logs")
    os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig(
        build_logging_config(
            log_file=os.path.join(log_dir, "knowledge_core.log"),
            tz_name=os.getenv("TIMEZONE", "UTC"),
            level=level,
        )
    )
    for quiet in QUIET_LOGGERS:
        logging.getLogger(quiet).setLevel(logging.DEBUG if debug else logging.WARNING)

    return ColorLogger(logging.getLogger(name))
