from __future__ import annotations

import copy
import logging
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from logging import Logger
from typing import Callable, Generic, Optional, Type, TypeVar

from plux import Plugin, PluginManager

from medialive_resources import config
from medialive_resources.aws.connect import ServiceLevelClientFactory, connect_to
from medialive_resources.aws.errors import REMOTE_ERRORS, get_error_message, is_not_found_error
from medialive_resources.constants import STATE_DELETED
from medialive_resources.exceptions import (
    DeleteFailed,
    DeleteTimeoutError,
    MediaLiveResourceError,
    NotFoundError,
    ReplacementRequired,
    ValidationError,
)
from medialive_resources.provider_utils import changed_keys, copy_model
from medialive_resources.utils.sync import PollTimeoutError, RetryableError, retry_until

LOG = logging.getLogger(__name__)

Properties = TypeVar("Properties")

PUBLIC_REGISTRY: dict[str, Type[ResourceProvider]] = {}


class OperationStatus(Enum):
    PENDING = auto()
    IN_PROGRESS = auto()
    SUCCESS = auto()
    FAILED = auto()


class ChangeAction(str, Enum):
    ADD = "Add"
    MODIFY = "Modify"
    REPLACE = "Replace"
    REMOVE = "Remove"
    READ = "Read"
    LIST = "List"
    NO_CHANGE = "NoChange"


@dataclass
class ProgressEvent(Generic[Properties]):
    status: OperationStatus
    resource_model: Optional[Properties] = None
    resource_models: Optional[list[Properties]] = None

    message: str = ""
    result: Optional[str] = None
    error_code: Optional[str] = None
    custom_context: dict = field(default_factory=dict)


@dataclass
class ResourceRequest(Generic[Properties]):
    aws_client_factory: ServiceLevelClientFactory
    resource_type: str
    action: str

    desired_state: Properties

    logical_resource_id: str = ""
    request_token: str = field(default_factory=lambda: str(uuid.uuid4()))
    logger: Logger = LOG

    custom_context: dict = field(default_factory=dict)

    previous_state: Optional[Properties] = None

    # set by the caller to abort waiting for asynchronous operations
    cancel_event: Optional[threading.Event] = None
    # time.monotonic() timestamp after which waiting for asynchronous operations stops
    deadline: Optional[float] = None

    @property
    def resource_id(self) -> Optional[str]:
        """The remote id, which is assigned on creation and never changes afterwards."""
        for state in (self.desired_state, self.previous_state):
            if state and state.get("id"):
                return state["id"]
        return None


class MediaLiveResourceProviderPlugin(Plugin):
    """
    Base class for resource provider plugins.
    """

    namespace = "medialive_resources.resource_providers"


class ResourceProvider(Generic[Properties]):
    """
    This provides a base class onto which the resource providers are built.

    Subclasses define ``TYPE`` and ``SCHEMA`` (the resource type schema, which names the create-only and read-only
    properties), implement the CRUD(L) operations and ``validate``.
    """

    TYPE: str
    SCHEMA: dict

    def create(self, request: ResourceRequest[Properties]) -> ProgressEvent[Properties]:
        raise NotImplementedError

    def read(self, request: ResourceRequest[Properties]) -> ProgressEvent[Properties]:
        raise NotImplementedError

    def update(self, request: ResourceRequest[Properties]) -> ProgressEvent[Properties]:
        raise NotImplementedError

    def delete(self, request: ResourceRequest[Properties]) -> ProgressEvent[Properties]:
        raise NotImplementedError

    def list(self, request: ResourceRequest[Properties]) -> ProgressEvent[Properties]:
        raise NotImplementedError

    def validate(self, properties: Properties) -> list[str]:
        """Returns the constraint violations of the given desired state, an empty list if there are none."""
        return []

    # helpers shared by all providers

    @property
    def create_only_properties(self) -> list[str]:
        return [p.removeprefix("/properties/") for p in self.SCHEMA.get("createOnlyProperties", [])]

    @property
    def read_only_properties(self) -> list[str]:
        return [p.removeprefix("/properties/") for p in self.SCHEMA.get("readOnlyProperties", [])]

    @property
    def declared_properties(self) -> list[str]:
        """All properties a caller may declare, i.e. everything except the computed ones."""
        read_only = self.read_only_properties
        return [p for p in self.SCHEMA.get("properties", {}) if p not in read_only]

    def validate_desired_state(self, properties: Properties) -> None:
        violations = self.validate(properties or {})
        if violations:
            raise ValidationError(self.TYPE, violations)

    def declared_state(self, properties: Optional[Properties]) -> dict:
        """
        The part of a state the caller controls. Providers whose nested blocks carry computed values
        strip them here, so that a state read back from the service compares equal to its declaration.
        """
        return properties or {}

    def replaced_properties(self, previous: Optional[Properties], desired: Properties) -> list[str]:
        return changed_keys(
            self.declared_state(previous), self.declared_state(desired), self.create_only_properties
        )

    def modified_properties(self, previous: Optional[Properties], desired: Properties) -> list[str]:
        return changed_keys(
            self.declared_state(previous), self.declared_state(desired), self.declared_properties
        )

    def check_replacement(self, request: ResourceRequest[Properties]) -> None:
        replaced = self.replaced_properties(request.previous_state, request.desired_state)
        if replaced:
            raise ReplacementRequired(self.TYPE, request.resource_id, replaced)

    def require_resource_id(self, request: ResourceRequest[Properties]) -> str:
        resource_id = request.resource_id
        if not resource_id:
            raise ValidationError(self.TYPE, ["id: required to address an existing resource"])
        return resource_id

    def wait_for_deletion(
        self,
        request: ResourceRequest[Properties],
        resource_id: str,
        describe: Callable[[], dict],
        timeout: float,
    ) -> None:
        """
        Polls ``describe`` until the service reports the entity as gone (not found, or in state DELETED).

        Once the time budget is used up, or the caller cancelled the wait, the entity is described exactly one
        more time. If it is gone by then, the deletion counts as completed, otherwise a ``DeleteTimeoutError``
        is raised. Any error other than not found aborts the polling right away.
        """
        last_state = None

        def _check_deleted():
            nonlocal last_state
            try:
                response = describe()
            except REMOTE_ERRORS as e:
                if is_not_found_error(e):
                    return
                raise DeleteFailed(self.TYPE, resource_id, get_error_message(e)) from e
            last_state = response.get("State")
            if last_state == STATE_DELETED:
                return
            raise RetryableError(f"{self.TYPE} ({resource_id}) still exists, state: {last_state}")

        try:
            retry_until(
                _check_deleted,
                interval=config.DELETE_POLL_INTERVAL,
                timeout=timeout,
                cancel_event=request.cancel_event,
                deadline=request.deadline,
            )
            return
        except PollTimeoutError as e:
            request.logger.debug(
                "Waiting for deletion of %s (%s) stopped: %s", self.TYPE, resource_id, e
            )

        # the deletion might have completed right after the last attempt
        try:
            _check_deleted()
        except RetryableError:
            raise DeleteTimeoutError(self.TYPE, resource_id, timeout, last_state)


def register_resource_provider(resource_type: str, provider_class: Type[ResourceProvider]) -> None:
    PUBLIC_REGISTRY[resource_type] = provider_class


class NoResourceProvider(Exception):
    pass


class ResourceProviderExecutor:
    """
    Point of abstraction between callers holding declared states and the resource providers.

    The executor picks the provider for a resource type, decides which action brings the remote
    entity from the previous to the desired state, and turns provider errors into failed progress events.
    """

    def __init__(
        self,
        *,
        client_factory: Optional[ServiceLevelClientFactory] = None,
        providers: Optional[dict[str, ResourceProvider]] = None,
    ):
        self.client_factory = client_factory or connect_to()
        self.providers = dict(providers or {})

    def plan(
        self,
        resource_type: str,
        previous_state: Optional[dict],
        desired_state: Optional[dict],
    ) -> ChangeAction:
        if desired_state is None:
            return ChangeAction.REMOVE
        if not previous_state or not previous_state.get("id"):
            return ChangeAction.ADD

        resource_provider = self.load_resource_provider(resource_type)
        if resource_provider.replaced_properties(previous_state, desired_state):
            return ChangeAction.REPLACE
        if resource_provider.modified_properties(previous_state, desired_state):
            return ChangeAction.MODIFY
        return ChangeAction.NO_CHANGE

    def deploy(
        self,
        resource_type: str,
        desired_state: Optional[dict],
        previous_state: Optional[dict] = None,
        logical_resource_id: str = "",
        cancel_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
    ) -> ProgressEvent:
        """
        Reconciles a single resource: plans the action for the given states and executes it.
        """
        action = self.plan(resource_type, previous_state, desired_state)
        LOG.debug("Planned action %s for %s %s", action.value, resource_type, logical_resource_id)

        if desired_state is not None and previous_state and previous_state.get("id"):
            # the remote id is never declared, it is carried over from the previous state
            desired_state = {**desired_state, "id": previous_state["id"]}

        request = ResourceRequest(
            aws_client_factory=self.client_factory,
            resource_type=resource_type,
            action=action.value,
            desired_state=copy_model(desired_state if desired_state is not None else previous_state),
            previous_state=copy.deepcopy(previous_state),
            logical_resource_id=logical_resource_id,
            logger=logging.getLogger(f"{__name__}.{logical_resource_id or resource_type}"),
            cancel_event=cancel_event,
            deadline=deadline,
        )
        return self.execute_action(self.load_resource_provider(resource_type), request)

    def execute_action(
        self, resource_provider: ResourceProvider, request: ResourceRequest
    ) -> ProgressEvent:
        change_type = ChangeAction(request.action)
        try:
            match change_type:
                case ChangeAction.ADD:
                    return resource_provider.create(request)
                case ChangeAction.MODIFY:
                    return resource_provider.update(request)
                case ChangeAction.REPLACE:
                    return self._replace(resource_provider, request)
                case ChangeAction.REMOVE:
                    return resource_provider.delete(request)
                case ChangeAction.LIST:
                    return resource_provider.list(request)
                case ChangeAction.READ | ChangeAction.NO_CHANGE:
                    try:
                        return resource_provider.read(request)
                    except NotFoundError as e:
                        # the entity is gone, the caller should drop its record
                        request.logger.info("%s, dropping it from the state", e)
                        return ProgressEvent(
                            status=OperationStatus.SUCCESS,
                            resource_model=None,
                            message=str(e),
                        )
                case _:
                    raise NotImplementedError(change_type)
        except MediaLiveResourceError as e:
            log_method = LOG.warning
            if config.VERBOSE_ERRORS:
                log_method = LOG.exception
            log_method(
                "%s of %s %s failed: %s",
                change_type.value,
                request.resource_type,
                request.resource_id or request.logical_resource_id,
                e,
            )
            return ProgressEvent(
                status=OperationStatus.FAILED,
                resource_model=request.desired_state,
                message=str(e),
                error_code=type(e).__name__,
            )

    def _replace(self, resource_provider: ResourceProvider, request: ResourceRequest) -> ProgressEvent:
        # validate before tearing anything down
        resource_provider.validate_desired_state(request.desired_state)

        remove_request = copy.copy(request)
        remove_request.action = ChangeAction.REMOVE.value
        remove_request.desired_state = copy_model(request.previous_state)
        resource_provider.delete(remove_request)

        add_request = copy.copy(request)
        add_request.action = ChangeAction.ADD.value
        add_request.desired_state = {
            k: v for k, v in request.desired_state.items() if k not in resource_provider.read_only_properties
        }
        add_request.previous_state = None
        return resource_provider.create(add_request)

    def load_resource_provider(self, resource_type: str) -> ResourceProvider:
        # 1. explicitly passed provider instances
        if resource_type in self.providers:
            return self.providers[resource_type]

        # 2. providers registered in code
        if resource_type in PUBLIC_REGISTRY:
            self.providers[resource_type] = PUBLIC_REGISTRY[resource_type]()
            return self.providers[resource_type]

        # 3. plugins registered via entry points
        try:
            plugin = plugin_manager.load(resource_type)
            self.providers[resource_type] = plugin.factory()
            return self.providers[resource_type]
        except ValueError:
            # could not find a plugin for that name
            pass
        except Exception:
            LOG.warning(
                "Failed to load resource type %s as a ResourceProvider.",
                resource_type,
                exc_info=LOG.isEnabledFor(logging.DEBUG),
            )

        raise NoResourceProvider(resource_type)


plugin_manager = PluginManager(MediaLiveResourceProviderPlugin.namespace)
