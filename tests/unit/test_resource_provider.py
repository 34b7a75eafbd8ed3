import threading

import pytest

from medialive_resources import resource_provider
from medialive_resources.exceptions import DeleteTimeoutError, ReplacementRequired
from medialive_resources.resource_provider import (
    ChangeAction,
    NoResourceProvider,
    OperationStatus,
    ProgressEvent,
    ResourceProviderExecutor,
    ResourceRequest,
    register_resource_provider,
)
from medialive_resources.services.medialive.resource_providers.aws_medialive_channel import (
    MediaLiveChannelProvider,
)
from medialive_resources.services.medialive.resource_providers.aws_medialive_channel_plugin import (
    MediaLiveChannelProviderPlugin,
)
from medialive_resources.services.medialive.resource_providers.aws_medialive_input import (
    MediaLiveInputProvider,
)
from medialive_resources.services.medialive.resource_providers.aws_medialive_input_plugin import (
    MediaLiveInputProviderPlugin,
)
from medialive_resources.services.medialive.resource_providers.aws_medialive_inputsecuritygroup import (
    MediaLiveInputSecurityGroupProvider,
)
from medialive_resources.services.medialive.resource_providers.aws_medialive_inputsecuritygroup_plugin import (
    MediaLiveInputSecurityGroupProviderPlugin,
)

INPUT = "AWS::MediaLive::Input"
ISG = "AWS::MediaLive::InputSecurityGroup"


@pytest.fixture
def executor(client_factory):
    return ResourceProviderExecutor(
        client_factory=client_factory,
        providers={
            INPUT: MediaLiveInputProvider(),
            ISG: MediaLiveInputSecurityGroupProvider(),
            "AWS::MediaLive::Channel": MediaLiveChannelProvider(),
        },
    )


class TestPlan:
    def test_plan(self, executor):
        previous = {"id": "1", "ipv4_whitelist": ["10.0.0.0/16"], "state": "IDLE", "inputs": []}

        assert executor.plan(ISG, None, {"ipv4_whitelist": ["10.0.0.0/16"]}) == ChangeAction.ADD
        assert executor.plan(ISG, previous, None) == ChangeAction.REMOVE
        assert executor.plan(ISG, previous, {"ipv4_whitelist": ["10.0.0.0/16"]}) == ChangeAction.NO_CHANGE
        assert executor.plan(ISG, previous, {"ipv4_whitelist": ["10.1.0.0/16"]}) == ChangeAction.MODIFY

    def test_empty_and_absent_values_are_equal(self, executor):
        previous = {"id": "1", "name": "in", "type": "RTMP_PUSH", "destinations": [], "tags": {}}

        assert executor.plan(INPUT, previous, {"name": "in", "type": "RTMP_PUSH"}) == ChangeAction.NO_CHANGE

    def test_computed_destination_fields_are_ignored(self, executor):
        previous = {
            "id": "1",
            "name": "in",
            "type": "RTMP_PUSH",
            "destinations": [
                {"endpoint": "key", "ip": "203.0.113.10", "port": "1935", "url": "rtmp://203.0.113.10:1935/app/key"}
            ],
        }
        desired = {"name": "in", "type": "RTMP_PUSH", "destinations": [{"endpoint": "key"}]}

        assert executor.plan(INPUT, previous, desired) == ChangeAction.NO_CHANGE

    def test_create_only_change_is_a_replacement(self, executor):
        previous = {"id": "1", "name": "in", "type": "RTMP_PUSH"}

        assert executor.plan(INPUT, previous, {"name": "in", "type": "UDP_PUSH"}) == ChangeAction.REPLACE
        assert (
            executor.plan(INPUT, previous, {"name": "in", "type": "RTMP_PUSH", "vpc": [{"subnet_ids": ["a", "b"]}]})
            == ChangeAction.REPLACE
        )

    def test_without_previous_id_is_an_add(self, executor):
        assert executor.plan(ISG, {"ipv4_whitelist": []}, {"ipv4_whitelist": []}) == ChangeAction.ADD


class TestDeploy:
    def test_lifecycle(self, executor, medialive):
        desired = {"ipv4_whitelist": ["10.0.0.0/16"]}

        event = executor.deploy(ISG, desired, logical_resource_id="ingest")
        assert event.status == OperationStatus.SUCCESS
        created = event.resource_model
        assert created["id"] in medialive.input_security_groups

        event = executor.deploy(ISG, {"ipv4_whitelist": ["10.2.0.0/16"]}, previous_state=created)
        assert event.status == OperationStatus.SUCCESS
        assert event.resource_model["id"] == created["id"]
        assert event.resource_model["ipv4_whitelist"] == ["10.2.0.0/16"]
        updated = event.resource_model

        medialive.calls.clear()
        event = executor.deploy(ISG, {"ipv4_whitelist": ["10.2.0.0/16"]}, previous_state=updated)
        assert event.resource_model == updated
        assert medialive.operations == ["describe_input_security_group"]

        event = executor.deploy(ISG, None, previous_state=updated)
        assert event.status == OperationStatus.SUCCESS
        assert medialive.input_security_groups == {}

    def test_refresh_of_a_vanished_entity(self, executor, medialive):
        created = executor.deploy(ISG, {"ipv4_whitelist": ["10.0.0.0/16"]}).resource_model
        del medialive.input_security_groups[created["id"]]

        event = executor.deploy(ISG, {"ipv4_whitelist": ["10.0.0.0/16"]}, previous_state=created)

        assert event.status == OperationStatus.SUCCESS
        assert event.resource_model is None

    def test_replace(self, executor, medialive):
        created = executor.deploy(INPUT, {"name": "in", "type": "RTMP_PUSH"}).resource_model
        medialive.calls.clear()

        event = executor.deploy(INPUT, {"name": "in", "type": "UDP_PUSH"}, previous_state=created)

        assert event.status == OperationStatus.SUCCESS
        assert event.resource_model["id"] != created["id"]
        assert event.resource_model["type"] == "UDP_PUSH"
        assert created["id"] not in medialive.inputs
        assert medialive.operations[0] == "delete_input"
        assert "create_input" in medialive.operations
        assert "id" not in medialive.calls[medialive.operations.index("create_input")][1]

    def test_invalid_replacement_keeps_the_old_entity(self, executor, medialive):
        created = executor.deploy(INPUT, {"name": "in", "type": "RTMP_PUSH"}).resource_model

        event = executor.deploy(INPUT, {"name": "in", "type": "RTP_PULL"}, previous_state=created)

        assert event.status == OperationStatus.FAILED
        assert event.error_code == "ValidationError"
        assert created["id"] in medialive.inputs

    def test_validation_error_becomes_failed_event(self, executor, medialive):
        event = executor.deploy(ISG, {"ipv4_whitelist": ["10.0.0.1/16"]}, logical_resource_id="ingest")

        assert event.status == OperationStatus.FAILED
        assert event.error_code == "ValidationError"
        assert "ipv4_whitelist[0]" in event.message
        assert medialive.calls == []

    def test_read_failure_after_create_keeps_the_id(self, executor, medialive, client_error):
        medialive.errors["describe_input"] = client_error("ThrottlingException", "Rate exceeded")

        event = executor.deploy(INPUT, {"name": "in", "type": "RTMP_PUSH"})

        assert event.status == OperationStatus.FAILED
        assert event.error_code == "ReadFailed"
        assert event.resource_model["id"] in medialive.inputs
        assert event.resource_model["id"] in event.message
        assert "ThrottlingException: Rate exceeded" in event.message

    def test_refresh_with_remote_error(self, executor, medialive, client_error):
        created = executor.deploy(ISG, {"ipv4_whitelist": ["10.0.0.0/16"]}).resource_model
        medialive.errors["describe_input_security_group"] = client_error("InternalServerErrorException")

        event = executor.deploy(ISG, {"ipv4_whitelist": ["10.0.0.0/16"]}, previous_state=created)

        assert event.status == OperationStatus.FAILED
        assert event.error_code == "ReadFailed"
        assert event.resource_model["id"] == created["id"]

    def test_remote_error_becomes_failed_event(self, executor, medialive, client_error):
        medialive.errors["create_input"] = client_error("BadRequestException", "quota reached")

        event = executor.deploy(INPUT, {"name": "in", "type": "RTMP_PUSH"})

        assert event.status == OperationStatus.FAILED
        assert event.error_code == "CreateFailed"
        assert "quota reached" in event.message


class TestLoadResourceProvider:
    def test_registered_provider(self, client_factory, monkeypatch):
        monkeypatch.setitem(resource_provider.PUBLIC_REGISTRY, ISG, MediaLiveInputSecurityGroupProvider)
        executor = ResourceProviderExecutor(client_factory=client_factory)

        provider = executor.load_resource_provider(ISG)

        assert isinstance(provider, MediaLiveInputSecurityGroupProvider)
        assert executor.load_resource_provider(ISG) is provider

    def test_register_resource_provider(self, monkeypatch):
        monkeypatch.setattr(resource_provider, "PUBLIC_REGISTRY", {})

        register_resource_provider(INPUT, MediaLiveInputProvider)

        assert resource_provider.PUBLIC_REGISTRY == {INPUT: MediaLiveInputProvider}

    def test_unknown_type(self, client_factory):
        executor = ResourceProviderExecutor(client_factory=client_factory)

        with pytest.raises(NoResourceProvider):
            executor.load_resource_provider("AWS::MediaLive::Multiplex")

    @pytest.mark.parametrize(
        "plugin_class, provider_class",
        [
            (MediaLiveInputProviderPlugin, MediaLiveInputProvider),
            (MediaLiveInputSecurityGroupProviderPlugin, MediaLiveInputSecurityGroupProvider),
            (MediaLiveChannelProviderPlugin, MediaLiveChannelProvider),
        ],
    )
    def test_plugins(self, plugin_class, provider_class):
        plugin = plugin_class()
        assert plugin.factory is None

        plugin.load()

        assert plugin.factory is provider_class
        assert plugin.name == provider_class.TYPE


class TestResourceProvider:
    def test_schema_properties(self):
        provider = MediaLiveInputProvider()

        assert provider.create_only_properties == ["type", "vpc"]
        assert "id" in provider.read_only_properties
        assert "id" not in provider.declared_properties
        assert "name" in provider.declared_properties

    def test_update_with_create_only_change(self, create_request):
        provider = MediaLiveInputProvider()
        previous = {"id": "1", "name": "in", "type": "RTMP_PUSH"}

        with pytest.raises(ReplacementRequired) as e:
            provider.update(create_request(INPUT, "Modify", {**previous, "type": "UDP_PUSH"}, previous))

        assert e.value.fields == ["type"]

    def test_request_resource_id(self, client_factory):
        request = ResourceRequest(
            aws_client_factory=client_factory,
            resource_type=ISG,
            action="Remove",
            desired_state={},
            previous_state={"id": "42"},
        )

        assert request.resource_id == "42"
        assert request.request_token


class _FakeDescribe:
    """Returns the given states one after another, the last one forever."""

    def __init__(self, *states):
        self.states = list(states)
        self.count = 0

    def __call__(self):
        self.count += 1
        state = self.states[min(self.count, len(self.states)) - 1]
        if isinstance(state, Exception):
            raise state
        return {"State": state}


class TestWaitForDeletion:
    @pytest.fixture
    def request_(self, create_request):
        return create_request(ISG, "Remove", {"id": "1"})

    def test_deleted_state(self, request_):
        describe = _FakeDescribe("DELETING", "DELETING", "DELETED")

        MediaLiveInputSecurityGroupProvider().wait_for_deletion(request_, "1", describe, timeout=5)

        assert describe.count == 3

    def test_not_found(self, request_, not_found_error):
        describe = _FakeDescribe("DELETING", not_found_error())

        MediaLiveInputSecurityGroupProvider().wait_for_deletion(request_, "1", describe, timeout=5)

        assert describe.count == 2

    def test_timeout(self, request_):
        provider = MediaLiveInputSecurityGroupProvider()

        with pytest.raises(DeleteTimeoutError) as e:
            provider.wait_for_deletion(request_, "1", _FakeDescribe("IN_USE"), timeout=0.05)

        assert e.value.state == "IN_USE"
        assert e.value.resource_id == "1"

    def test_cancelled_wait_checks_one_last_time(self, create_request, not_found_error):
        cancel_event = threading.Event()
        cancel_event.set()
        request = create_request(ISG, "Remove", {"id": "1"}, cancel_event=cancel_event)
        describe = _FakeDescribe(not_found_error())

        MediaLiveInputSecurityGroupProvider().wait_for_deletion(request, "1", describe, timeout=60)

        assert describe.count == 1

    def test_cancelled_wait_while_still_deleting(self, create_request):
        cancel_event = threading.Event()
        cancel_event.set()
        request = create_request(ISG, "Remove", {"id": "1"}, cancel_event=cancel_event)

        with pytest.raises(DeleteTimeoutError) as e:
            MediaLiveInputSecurityGroupProvider().wait_for_deletion(
                request, "1", _FakeDescribe("DELETING"), timeout=60
            )

        assert e.value.state == "DELETING"


def test_progress_event_defaults():
    event = ProgressEvent(status=OperationStatus.SUCCESS)

    assert event.resource_model is None
    assert event.custom_context == {}
