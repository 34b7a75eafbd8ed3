import copy
import itertools
from typing import Callable
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from medialive_resources import config

TEST_AWS_ACCESS_KEY_ID = "test"
TEST_AWS_SECRET_ACCESS_KEY = "test"
TEST_AWS_REGION_NAME = "us-east-1"
TEST_AWS_ACCOUNT_ID = "000000000000"


@pytest.fixture(autouse=True)
def set_boto_test_credentials_and_region(monkeypatch):
    """
    Automatically sets the default credentials and region for all unit tests.
    """
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", TEST_AWS_ACCESS_KEY_ID)
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", TEST_AWS_SECRET_ACCESS_KEY)
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_AWS_REGION_NAME)


@pytest.fixture(autouse=True)
def fast_delete_polling(monkeypatch):
    """Keeps the delete polling of the providers short."""
    monkeypatch.setattr(config, "DELETE_POLL_INTERVAL", 0.01)
    monkeypatch.setattr(config, "MEDIALIVE_INPUT_DELETE_TIMEOUT", 0.05)
    monkeypatch.setattr(config, "MEDIALIVE_INPUT_SECURITY_GROUP_DELETE_TIMEOUT", 0.05)
    monkeypatch.setattr(config, "MEDIALIVE_CHANNEL_DELETE_TIMEOUT", 0.05)


def create_client_error(code: str, message: str = "", status_code: int = 400, operation: str = "Op"):
    return ClientError(
        {
            "Error": {"Code": code, "Message": message or f"{code} error"},
            "ResponseMetadata": {"HTTPStatusCode": status_code},
        },
        operation,
    )


@pytest.fixture
def client_error() -> Callable[..., ClientError]:
    return create_client_error


@pytest.fixture
def not_found_error() -> Callable[..., ClientError]:
    def _create(operation: str = "Describe"):
        return create_client_error("NotFoundException", "the entity does not exist", 404, operation)

    return _create


class FakeMediaLive:
    """
    In-memory stand-in for the boto3 MediaLive client.

    Deletions complete right away. Every call is recorded in ``calls``, and an exception put into
    ``errors`` under the operation name is raised when that operation is called.
    """

    page_size = 2

    def __init__(self):
        self.inputs = {}
        self.input_security_groups = {}
        self.channels = {}
        self.calls = []
        self.errors = {}
        self._ids = itertools.count(1000)

    @property
    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    def _record(self, operation: str, params: dict):
        self.calls.append((operation, copy.deepcopy(params)))
        if operation in self.errors:
            raise self.errors[operation]

    def _arn(self, kind: str, entity_id: str) -> str:
        return f"arn:aws:medialive:{TEST_AWS_REGION_NAME}:{TEST_AWS_ACCOUNT_ID}:{kind}:{entity_id}"

    def _get(self, store: dict, entity_id: str, operation: str) -> dict:
        if entity_id not in store:
            raise create_client_error(
                "NotFoundException", f"{entity_id} does not exist", 404, operation
            )
        return store[entity_id]

    def _list(self, store: dict, key: str, next_token: str = None) -> dict:
        ids = sorted(store)
        start = int(next_token or 0)
        result = {key: [copy.deepcopy(store[i]) for i in ids[start : start + self.page_size]]}
        if start + self.page_size < len(ids):
            result["NextToken"] = str(start + self.page_size)
        return result

    def _find_by_arn(self, arn: str) -> dict:
        for store in (self.inputs, self.input_security_groups, self.channels):
            for entity in store.values():
                if entity["Arn"] == arn:
                    return entity
        raise create_client_error("NotFoundException", f"{arn} does not exist", 404, "Tags")

    # input security groups

    def create_input_security_group(self, **params):
        self._record("create_input_security_group", params)
        group_id = str(next(self._ids))
        self.input_security_groups[group_id] = {
            "Id": group_id,
            "Arn": self._arn("inputSecurityGroup", group_id),
            "Inputs": [],
            "State": "IDLE",
            "Tags": dict(params.get("Tags") or {}),
            "WhitelistRules": [{"Cidr": rule["Cidr"]} for rule in params["WhitelistRules"]],
        }
        return {"SecurityGroup": copy.deepcopy(self.input_security_groups[group_id])}

    def describe_input_security_group(self, **params):
        self._record("describe_input_security_group", params)
        group_id = params["InputSecurityGroupId"]
        return copy.deepcopy(
            self._get(self.input_security_groups, group_id, "DescribeInputSecurityGroup")
        )

    def update_input_security_group(self, **params):
        self._record("update_input_security_group", params)
        group = self._get(
            self.input_security_groups, params["InputSecurityGroupId"], "UpdateInputSecurityGroup"
        )
        if "WhitelistRules" in params:
            group["WhitelistRules"] = [{"Cidr": rule["Cidr"]} for rule in params["WhitelistRules"]]
        return {"SecurityGroup": copy.deepcopy(group)}

    def delete_input_security_group(self, **params):
        self._record("delete_input_security_group", params)
        group_id = params["InputSecurityGroupId"]
        self._get(self.input_security_groups, group_id, "DeleteInputSecurityGroup")
        del self.input_security_groups[group_id]
        return {}

    def list_input_security_groups(self, **params):
        self._record("list_input_security_groups", params)
        return self._list(self.input_security_groups, "InputSecurityGroups", params.get("NextToken"))

    # inputs

    def _input_destinations(self, destinations: list[dict], with_vpc: bool) -> list[dict]:
        result = []
        for i, destination in enumerate(destinations):
            ip = f"203.0.113.{10 + i}"
            entry = {
                "Ip": ip,
                "Port": "1935",
                "Url": f"rtmp://{ip}:1935/app/{destination['StreamName']}",
            }
            if with_vpc:
                entry["Vpc"] = {
                    "AvailabilityZone": f"{TEST_AWS_REGION_NAME}a",
                    "NetworkInterfaceId": f"eni-{i:08d}",
                }
            result.append(entry)
        return result

    def create_input(self, **params):
        self._record("create_input", params)
        input_id = str(next(self._ids))
        self.inputs[input_id] = {
            "Id": input_id,
            "Arn": self._arn("input", input_id),
            "Name": params["Name"],
            "Type": params["Type"],
            "Destinations": self._input_destinations(
                params.get("Destinations") or [], "Vpc" in params
            ),
            "SecurityGroups": list(params.get("InputSecurityGroups") or []),
            "InputClass": "STANDARD",
            "InputSourceType": "STATIC",
            "State": "DETACHED",
            "AttachedChannels": [],
            "Tags": dict(params.get("Tags") or {}),
        }
        return {"Input": copy.deepcopy(self.inputs[input_id])}

    def describe_input(self, **params):
        self._record("describe_input", params)
        return copy.deepcopy(self._get(self.inputs, params["InputId"], "DescribeInput"))

    def update_input(self, **params):
        self._record("update_input", params)
        item = self._get(self.inputs, params["InputId"], "UpdateInput")
        if "Destinations" in params:
            item["Destinations"] = self._input_destinations(params["Destinations"], False)
        if "InputSecurityGroups" in params:
            item["SecurityGroups"] = list(params["InputSecurityGroups"])
        if "Name" in params:
            item["Name"] = params["Name"]
        return {"Input": copy.deepcopy(item)}

    def delete_input(self, **params):
        self._record("delete_input", params)
        self._get(self.inputs, params["InputId"], "DeleteInput")
        del self.inputs[params["InputId"]]
        return {}

    def list_inputs(self, **params):
        self._record("list_inputs", params)
        return self._list(self.inputs, "Inputs", params.get("NextToken"))

    # channels

    def create_channel(self, **params):
        self._record("create_channel", params)
        channel_id = str(next(self._ids))
        pipelines = 2 if params["ChannelClass"] == "STANDARD" else 1
        self.channels[channel_id] = {
            "Id": channel_id,
            "Arn": self._arn("channel", channel_id),
            "ChannelClass": params["ChannelClass"],
            "Destinations": copy.deepcopy(params["Destinations"]),
            "InputAttachments": copy.deepcopy(params["InputAttachments"]),
            "EgressEndpoints": [{"SourceIp": f"198.51.100.{i + 1}"} for i in range(pipelines)],
            "LogLevel": params.get("LogLevel", "DISABLED"),
            "Name": params.get("Name"),
            "RoleArn": params.get("RoleArn"),
            "PipelinesRunningCount": 0,
            "State": "IDLE",
            "Tags": dict(params.get("Tags") or {}),
        }
        return {"Channel": copy.deepcopy(self.channels[channel_id])}

    def describe_channel(self, **params):
        self._record("describe_channel", params)
        return copy.deepcopy(self._get(self.channels, params["ChannelId"], "DescribeChannel"))

    def update_channel(self, **params):
        self._record("update_channel", params)
        channel = self._get(self.channels, params["ChannelId"], "UpdateChannel")
        for key, value in params.items():
            if key != "ChannelId":
                channel[key] = copy.deepcopy(value)
        return {"Channel": copy.deepcopy(channel)}

    def update_channel_class(self, **params):
        self._record("update_channel_class", params)
        channel = self._get(self.channels, params["ChannelId"], "UpdateChannelClass")
        channel["ChannelClass"] = params["ChannelClass"]
        return {"Channel": copy.deepcopy(channel)}

    def delete_channel(self, **params):
        self._record("delete_channel", params)
        self._get(self.channels, params["ChannelId"], "DeleteChannel")
        del self.channels[params["ChannelId"]]
        return {}

    def list_channels(self, **params):
        self._record("list_channels", params)
        return self._list(self.channels, "Channels", params.get("NextToken"))

    # tags

    def create_tags(self, **params):
        self._record("create_tags", params)
        self._find_by_arn(params["ResourceArn"])["Tags"].update(params["Tags"])
        return {}

    def delete_tags(self, **params):
        self._record("delete_tags", params)
        tags = self._find_by_arn(params["ResourceArn"])["Tags"]
        for key in params["TagKeys"]:
            tags.pop(key, None)
        return {}


@pytest.fixture
def medialive() -> FakeMediaLive:
    return FakeMediaLive()


@pytest.fixture
def client_factory(medialive):
    """A client factory handing out the fake MediaLive client."""
    factory = MagicMock()
    factory.medialive = medialive
    return factory


@pytest.fixture
def create_request(client_factory):
    """Creates resource requests addressed to the fake MediaLive client."""
    from medialive_resources.resource_provider import ResourceRequest

    def _create(resource_type: str, action: str, desired_state: dict, previous_state: dict = None, **kwargs):
        return ResourceRequest(
            aws_client_factory=client_factory,
            resource_type=resource_type,
            action=action,
            desired_state=copy.deepcopy(desired_state),
            previous_state=copy.deepcopy(previous_state),
            **kwargs,
        )

    return _create
