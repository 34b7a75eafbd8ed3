"""
Errors raised by the MediaLive resource providers.

Every error names the resource type it concerns, and where one exists, the remote id,
so a failure can be diagnosed from its message alone.
"""
from typing import List, Optional


class MediaLiveResourceError(Exception):
    """Base class for all errors raised by a resource provider."""

    def __init__(self, message: str, resource_type: str, resource_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.resource_type = resource_type
        self.resource_id = resource_id


class ValidationError(MediaLiveResourceError):
    """The desired state violates one or more field constraints. Raised before any remote call."""

    def __init__(self, resource_type: str, violations: List[str]):
        self.violations = list(violations)
        super().__init__(
            f"invalid {resource_type} properties: {'; '.join(self.violations)}",
            resource_type,
        )


class NotFoundError(MediaLiveResourceError):
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} ({resource_id}) not found", resource_type, resource_id)


class ReadFailed(MediaLiveResourceError):
    """Describing or listing failed for a reason other than the entity being absent."""

    def __init__(self, resource_type: str, resource_id: Optional[str], remote_message: str):
        target = f"{resource_type} ({resource_id})" if resource_id else f"{resource_type} resources"
        super().__init__(f"error reading {target}: {remote_message}", resource_type, resource_id)


class CreateFailed(MediaLiveResourceError):
    def __init__(self, resource_type: str, remote_message: str):
        super().__init__(f"error creating {resource_type}: {remote_message}", resource_type)


class UpdateFailed(MediaLiveResourceError):
    def __init__(self, resource_type: str, resource_id: str, field_group: str, remote_message: str):
        self.field_group = field_group
        super().__init__(
            f"error updating {field_group} of {resource_type} ({resource_id}): {remote_message}",
            resource_type,
            resource_id,
        )


class ReplacementRequired(UpdateFailed):
    """Create-only fields changed, the entity has to be destroyed and created again."""

    def __init__(self, resource_type: str, resource_id: str, fields: List[str]):
        self.fields = sorted(fields)
        super().__init__(
            resource_type,
            resource_id,
            ", ".join(self.fields),
            "fields can only be set on creation, the resource must be replaced",
        )


class DeleteFailed(MediaLiveResourceError):
    def __init__(self, resource_type: str, resource_id: str, remote_message: str):
        super().__init__(
            f"error deleting {resource_type} ({resource_id}): {remote_message}",
            resource_type,
            resource_id,
        )


class DeleteTimeoutError(MediaLiveResourceError):
    def __init__(self, resource_type: str, resource_id: str, timeout: float, state: Optional[str]):
        self.timeout = timeout
        self.state = state
        super().__init__(
            f"timeout after {timeout:g}s waiting for {resource_type} ({resource_id}) deletion, "
            f"last observed state: {state or 'unknown'}",
            resource_type,
            resource_id,
        )
