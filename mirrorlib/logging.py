import json, logging, socket, sys, time
from typing import Mapping, TextIO
from logging import Logger
from colorama import Fore, Style

DEFAULT_APP_NAME = "repomirror"

_STANDARD_ATTRS = (
    "name","msg","args","levelname","levelno","pathname","filename",
    "module","exc_info","exc_text","stack_info","lineno","funcName",
    "created","msecs","relativeCreated","thread","threadName",
    "processName","process","taskName","message","asctime",
)


class JSONFormatter(logging.Formatter):
    def __init__(self, service: str = DEFAULT_APP_NAME):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "host": socket.gethostname(),
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        # extras passed via WithContext or log(..., extra={})
        for k, v in record.__dict__.items():
            if k not in _STANDARD_ATTRS:
                entry[k] = v
        return json.dumps(entry, ensure_ascii=False, default=str)


class PlainFormatter(logging.Formatter):
    def __init__(self):
        super().__init__("%(levelname)s, [%(asctime)s] %(name)s: %(message)s")


class ColorFormatter(logging.Formatter):
    """
    Wraps another formatter and colours its output by level.
    Colour is presentation only; the wrapped formatter does the work.
    """
    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED,
    }

    def __init__(self, inner: logging.Formatter):
        super().__init__()
        self.inner = inner

    def format(self, record: logging.LogRecord) -> str:
        text = self.inner.format(record)
        color = self.COLORS.get(record.levelno)
        if color is None:
            return text
        return color + text + Style.RESET_ALL


def make_formatter(fmt: str, service: str = DEFAULT_APP_NAME) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter(service=service)
    if fmt == "plain":
        return PlainFormatter()
    if fmt == "color":
        return ColorFormatter(PlainFormatter())
    raise ValueError(f"unknown log format: {fmt}")


def setup_logging(level: str | int = "WARNING", appName: str = DEFAULT_APP_NAME,
                  fmt: str = "color", stream: TextIO | None = None,
                  service: str = DEFAULT_APP_NAME) -> Logger:
    """
    Configure and return a namespaced logger with a single stream handler.
    The root logger is left alone; callers hold on to the returned
    logger and pass it where it is needed.
    """
    logger = logging.getLogger(appName)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()

    h = logging.StreamHandler(stream if stream is not None else sys.stderr)
    h.setLevel(level)
    h.setFormatter(make_formatter(fmt, service=service))
    logger.addHandler(h)
    return logger


class WithContext(logging.LoggerAdapter):
    """
    Lightweight context injector.
    Use: log = WithContext(logger, {"run_id": rid})
    """
    def process(self, msg, kwargs):
        ctx = self.extra or {}
        kw_extra: Mapping = kwargs.get("extra", {})
        merged = {**ctx, **kw_extra}
        kwargs["extra"] = merged
        return msg, kwargs
