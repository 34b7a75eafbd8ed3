import logging
import os
from typing import List, Union

from medialive_resources.constants import (
    LOG_LEVELS,
    TRACE_LOG_LEVELS,
    TRUE_STRINGS,
)


def eval_log_type(env_var_name: str) -> Union[str, bool]:
    """Get the log type from environment variable"""
    log_type = os.environ.get(env_var_name, "").lower().strip()
    return log_type if log_type in LOG_LEVELS else False


def is_env_true(env_var_name: str) -> bool:
    """Whether the given environment variable has a truthy value."""
    return os.environ.get(env_var_name, "").lower().strip() in TRUE_STRINGS


def parse_comma_separated_list(env_var_name: str) -> List[str]:
    """Split the value of the given env variable on commas, dropping empty entries."""
    value = os.environ.get(env_var_name, "")
    return [item.strip() for item in value.split(",") if item.strip()]


# log level of the package loggers (trace, debug, info, warn, error)
MEDIALIVE_LOG = eval_log_type("MEDIALIVE_LOG")
DEBUG = is_env_true("DEBUG") or MEDIALIVE_LOG in TRACE_LOG_LEVELS

# log the full stack trace of remote errors instead of a one-line warning
VERBOSE_ERRORS = is_env_true("VERBOSE_ERRORS")

# custom endpoint for the MediaLive API (e.g. a local emulator), empty for the AWS default
AWS_ENDPOINT_URL = os.environ.get("AWS_ENDPOINT_URL", "").strip() or None

# region used by the default client factory, falls back to the boto session region
AWS_REGION = (
    os.environ.get("AWS_REGION", "").strip()
    or os.environ.get("AWS_DEFAULT_REGION", "").strip()
    or None
)

# disable botocore's own retry handling for all created clients
DISABLE_BOTO_RETRIES = is_env_true("DISABLE_BOTO_RETRIES")

# seconds to wait between two describe calls while waiting for a deletion to complete
DELETE_POLL_INTERVAL = float(os.environ.get("DELETE_POLL_INTERVAL", "").strip() or 2)

# max seconds to wait for the deletion of the individual resource types
MEDIALIVE_INPUT_DELETE_TIMEOUT = float(
    os.environ.get("MEDIALIVE_INPUT_DELETE_TIMEOUT", "").strip() or 30
)
MEDIALIVE_INPUT_SECURITY_GROUP_DELETE_TIMEOUT = float(
    os.environ.get("MEDIALIVE_INPUT_SECURITY_GROUP_DELETE_TIMEOUT", "").strip() or 300
)
MEDIALIVE_CHANNEL_DELETE_TIMEOUT = float(
    os.environ.get("MEDIALIVE_CHANNEL_DELETE_TIMEOUT", "").strip() or 300
)

# tag keys (and key prefixes) that are neither read back nor reconciled
IGNORE_TAGS_KEYS = parse_comma_separated_list("IGNORE_TAGS_KEYS")
IGNORE_TAGS_KEY_PREFIXES = parse_comma_separated_list("IGNORE_TAGS_KEY_PREFIXES")


def is_trace_logging_enabled():
    if MEDIALIVE_LOG:
        log_level = str(MEDIALIVE_LOG).upper()
        return log_level.lower() in TRACE_LOG_LEVELS
    return False


# set log levels immediately, but will be overwritten later by setup_logging
if DEBUG:
    logging.getLogger("medialive_resources").setLevel(logging.DEBUG)

LOG = logging.getLogger(__name__)
if is_trace_logging_enabled():
    LOG.debug("Trace logging enabled, boto requests and responses will be logged")
