"""Tools for formatting medialive_resources logs."""
import logging
from functools import lru_cache

MAX_THREAD_NAME_LEN = 12
MAX_NAME_LEN = 26

LOG_FORMAT = f"%(asctime)s.%(msecs)03d %(ml_level)5s --- [%(ml_thread){MAX_THREAD_NAME_LEN}s] %(ml_name)-{MAX_NAME_LEN}s : %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

CUSTOM_LEVEL_NAMES = {
    50: "FATAL",
    40: "ERROR",
    30: "WARN",
    20: "INFO",
    10: "DEBUG",
}


class DefaultFormatter(logging.Formatter):
    """
    A formatter that uses ``LOG_FORMAT`` and ``LOG_DATE_FORMAT``.
    """

    def __init__(self, fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)


class AddFormattedAttributes(logging.Filter):
    """
    Filter that adds three attributes to a log record:

    - ml_level: the abbreviated loglevel that's max 5 characters long
    - ml_name: the abbreviated name of the logger (e.g., `m.services.medialive.input`), trimmed to ``MAX_NAME_LEN``
    - ml_thread: the abbreviated thread name (prefix trimmed, .e.g, ``omeThread-108``)
    """

    max_name_len: int
    max_thread_len: int

    def __init__(self, max_name_len: int = None, max_thread_len: int = None):
        super().__init__()
        self.max_name_len = max_name_len if max_name_len else MAX_NAME_LEN
        self.max_thread_len = max_thread_len if max_thread_len else MAX_THREAD_NAME_LEN

    def filter(self, record):
        record.ml_level = CUSTOM_LEVEL_NAMES.get(record.levelno, record.levelname)
        record.ml_name = self._get_compressed_logger_name(record.name)
        record.ml_thread = record.threadName[-self.max_thread_len :]
        return True

    @lru_cache(maxsize=256)
    def _get_compressed_logger_name(self, name):
        return compress_logger_name(name, self.max_name_len)


def compress_logger_name(name: str, length: int) -> str:
    """
    Creates a short version of a logger name. Parts are collapsed to their first letter from the left until the
    name fits, e.g., ``medialive_resources.services.medialive`` with length=24 turns into ``m.services.medialive``.

    :param name: the logger name
    :param length: the max length of the logger name
    :return: the compressed name
    """
    if len(name) <= length:
        return name

    parts = name.split(".")
    # walk from the right, keeping full parts while the collapsed remainder still fits
    kept = []
    for i in range(len(parts) - 1, -1, -1):
        collapsed = [p[0] for p in parts[:i]]
        candidate = ".".join(collapsed + [parts[i]] + kept)
        if len(candidate) > length:
            if not kept:
                # not even the last part fits, show as much of it as possible
                prefix = ".".join(collapsed)
                remaining = length - len(prefix) - (1 if prefix else 0)
                return ".".join(collapsed + [parts[i][: max(remaining, 1)]])
            return ".".join([p[0] for p in parts[: i + 1]] + kept)
        kept.insert(0, parts[i])

    return ".".join(kept)
