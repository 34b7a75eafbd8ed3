"""Helpers to inspect errors raised by boto clients."""
from botocore.exceptions import BotoCoreError, ClientError

from medialive_resources.constants import NOT_FOUND_ERROR_CODE

# errors a boto client call can raise: error responses of the service, and local/connection failures
REMOTE_ERRORS = (ClientError, BotoCoreError)


def get_error_code(e: Exception) -> str | None:
    if isinstance(e, ClientError):
        return e.response.get("Error", {}).get("Code")
    return None


def get_error_message(e: Exception) -> str:
    if isinstance(e, ClientError):
        message = e.response.get("Error", {}).get("Message")
        if message:
            return f"{get_error_code(e)}: {message}"
    return str(e)


def is_not_found_error(e: Exception) -> bool:
    """Whether the given exception is the service telling us that the addressed entity does not exist."""
    if not isinstance(e, ClientError):
        return False
    if get_error_code(e) == NOT_FOUND_ERROR_CODE:
        return True
    return e.response.get("ResponseMetadata", {}).get("HTTPStatusCode") == 404
