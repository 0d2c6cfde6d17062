import json
import logging
import logging.config
from pathlib import Path
from typing import Any, cast

__version__ = "1.0.0"
version = tuple(__version__.split("."))

__all__ = (
    "codec",
    "config",
    "document",
    "errors",
    "languages",
    "rules",
    "syntax",
    "logging_info",
    "version",
    "__version__",
)

CONFIG_FILENAME = "litescape.json"


class LoggingInfo:
    dir = Path("logs")

    def make_dir(self) -> None:
        self.dir.mkdir(exist_ok=True, parents=True)

    def add_path(self, *paths: str) -> str:
        p = self.dir
        for part in paths:
            p = p / part

        return str(p)


logging_info = LoggingInfo()


_FORMATTERS = {
    "brief": {
        "format": "[%(asctime)s] [%(levelname)s] %(message)s",
        "datefmt": "%H:%M:%S",
    },
    "full": {
        "format": "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        "datefmt": "%Y-%m-%d][%H:%M:%S",
    },
}

# option in the "logging" config section -> (handler name, file name, level)
_FILE_HANDLERS = {
    "file_log": ("file", "litescape.log", logging.INFO),
    "file_debug": ("debug_file", "debug.log", logging.DEBUG),
}


def _read_logging_config(base_path: Path) -> dict[str, Any]:
    cfg_file = base_path / CONFIG_FILENAME
    if not cfg_file.exists():
        return {}

    with open(cfg_file, encoding="utf-8") as config_file:
        return cast(dict[str, Any], json.load(config_file).get("logging", {}))


def _rotating_file_handler(filename: str, level: int) -> dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "maxBytes": 1000000,
        "backupCount": 5,
        "formatter": "full",
        "level": level,
        "encoding": "utf-8",
        "filename": logging_info.add_path(filename),
    }


def _setup(base_path: Path | None = None) -> None:
    """
    Configures the "litescape" logger from the "logging" section of
    litescape.json in `base_path`

    Recognised options are `console_debug`, `console_log_info`, `file_log` and
    `file_debug`. Log files go to `<base_path>/logs`.
    """
    base_path = base_path or Path().resolve()
    logging_config = _read_logging_config(base_path)
    logging_info.dir = base_path / "logs"

    logger_names = ["litescape"]
    if logging_config.get("console_debug", False):
        console_level = logging.DEBUG
        logger_names.append("asyncio")
    elif logging_config.get("console_log_info", True):
        console_level = logging.INFO
    else:
        console_level = logging.WARNING

    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "brief",
            "level": console_level,
            "stream": "ext://sys.stderr",
        },
    }
    for option, (name, filename, handler_level) in _FILE_HANDLERS.items():
        if logging_config.get(option, False):
            handlers[name] = _rotating_file_handler(filename, handler_level)

    if len(handlers) > 1:
        logging_info.make_dir()

    # calls that would route nowhere are dropped at the logger
    level = min(
        [handler["level"] for handler in handlers.values()] + [logging.WARNING]
    )

    logging.captureWarnings(True)
    logging.config.dictConfig(
        {
            "version": 1,
            "formatters": {name: dict(fmt) for name, fmt in _FORMATTERS.items()},
            "handlers": handlers,
            "loggers": {
                name: {"level": level, "handlers": list(handlers), "propagate": False}
                for name in logger_names
            },
            "root": {"level": level, "handlers": list(handlers)},
        }
    )
