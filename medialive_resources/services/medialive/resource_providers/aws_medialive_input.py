from pathlib import Path
from typing import Optional, TypedDict

import medialive_resources.provider_utils as util
from medialive_resources import config
from medialive_resources.aws.errors import REMOTE_ERRORS, get_error_message, is_not_found_error
from medialive_resources.exceptions import (
    CreateFailed,
    DeleteFailed,
    NotFoundError,
    ReadFailed,
    UpdateFailed,
)
from medialive_resources.resource_provider import (
    OperationStatus,
    ProgressEvent,
    ResourceProvider,
    ResourceRequest,
)
from medialive_resources.utils.tagging import tags_from_api, tags_to_api, update_tags
from medialive_resources.utils.validation import (
    check_one_of,
    check_required,
    check_size_between,
    check_string_list,
)

# the push input types, pull and device inputs are not supported
INPUT_TYPES = ["RTMP_PUSH", "RTP_PUSH", "UDP_PUSH"]


class InputDestinationVpc(TypedDict):
    availability_zone: Optional[str]
    network_interface_id: Optional[str]


class InputDestination(TypedDict):
    endpoint: Optional[str]
    # computed
    ip: Optional[str]
    port: Optional[str]
    url: Optional[str]
    vpc: Optional[InputDestinationVpc]


class InputVpcRequest(TypedDict):
    subnet_ids: Optional[list[str]]
    security_group_ids: Optional[list[str]]


class MediaLiveInputProperties(TypedDict):
    name: Optional[str]
    type: Optional[str]
    destinations: Optional[list[InputDestination]]
    input_security_groups: Optional[list[str]]
    vpc: Optional[list[InputVpcRequest]]
    tags: Optional[dict[str, str]]
    # read-only
    id: Optional[str]
    arn: Optional[str]
    input_class: Optional[str]
    input_source_type: Optional[str]
    state: Optional[str]
    attached_channels: Optional[list[str]]


def endpoint_from_url(url: Optional[str]) -> str:
    """
    Returns the stream name of a destination URL, e.g. ``streamkey`` for ``rtmp://host/app/streamkey``,
    or an empty string if the URL has less than four ``/`` separated segments. The empty segment between
    the two slashes after the scheme does not count.
    """
    parts = [part for part in (url or "").split("/") if part]
    if len(parts) < 4:
        return ""
    return parts[3]


def validate_input_properties(properties: MediaLiveInputProperties) -> list[str]:
    violations = check_required(properties, ["name", "type"])
    violations += check_one_of(properties.get("type"), INPUT_TYPES, "type")

    destinations = properties.get("destinations") or []
    for i, destination in enumerate(destinations):
        violations += check_required(destination, ["endpoint"], f"destinations[{i}]")

    violations += check_string_list(properties.get("input_security_groups"), "input_security_groups")

    vpc = properties.get("vpc")
    violations += check_size_between(vpc, "vpc", maximum=1)
    for i, vpc_request in enumerate(vpc or []):
        path = f"vpc[{i}]"
        violations += check_required(vpc_request, ["subnet_ids"], path)
        violations += check_string_list(vpc_request.get("subnet_ids"), f"{path}.subnet_ids")
        violations += check_size_between(
            vpc_request.get("subnet_ids"), f"{path}.subnet_ids", minimum=2, maximum=2
        )
        violations += check_string_list(
            vpc_request.get("security_group_ids"), f"{path}.security_group_ids"
        )
        violations += check_size_between(
            vpc_request.get("security_group_ids"), f"{path}.security_group_ids", maximum=5
        )

    return violations


def expand_destinations(destinations: list[InputDestination]) -> list[dict]:
    return [{"StreamName": destination["endpoint"]} for destination in destinations]


def expand_vpc(vpc: list[InputVpcRequest]) -> dict:
    vpc_request = vpc[0]
    request = {"SubnetIds": list(vpc_request["subnet_ids"])}
    if vpc_request.get("security_group_ids"):
        request["SecurityGroupIds"] = list(vpc_request["security_group_ids"])
    return request


def flatten_destinations(destinations: list[dict]) -> list[InputDestination]:
    result = []
    for destination in destinations:
        flattened = {
            "endpoint": endpoint_from_url(destination.get("Url")),
            "ip": destination.get("Ip"),
            "port": destination.get("Port"),
            "url": destination.get("Url"),
        }
        if vpc := destination.get("Vpc"):
            flattened["vpc"] = {
                "availability_zone": vpc.get("AvailabilityZone"),
                "network_interface_id": vpc.get("NetworkInterfaceId"),
            }
        result.append(flattened)
    return result


class MediaLiveInputProvider(ResourceProvider[MediaLiveInputProperties]):
    TYPE = "AWS::MediaLive::Input"  # Autogenerated. Don't change
    SCHEMA = util.get_schema_path(Path(__file__))  # Autogenerated. Don't change

    def validate(self, properties: MediaLiveInputProperties) -> list[str]:
        return validate_input_properties(properties)

    def declared_state(self, properties: Optional[MediaLiveInputProperties]) -> dict:
        state = dict(properties or {})
        if state.get("destinations") is not None:
            # ip, port, url and vpc of a destination are assigned by the service
            state["destinations"] = [
                {"endpoint": destination.get("endpoint")} for destination in state["destinations"]
            ]
        return state

    def create(
        self,
        request: ResourceRequest[MediaLiveInputProperties],
    ) -> ProgressEvent[MediaLiveInputProperties]:
        """
        Create a new resource.

        Primary identifier fields:
          - /properties/id

        Required properties:
          - name
          - type

        Create-only properties:
          - /properties/type
          - /properties/vpc

        Read-only properties:
          - /properties/id
          - /properties/arn
          - /properties/input_class
          - /properties/input_source_type
          - /properties/state
          - /properties/attached_channels

        IAM permissions required:
          - medialive:CreateInput
          - medialive:DescribeInput
          - medialive:CreateTags
        """
        model = request.desired_state
        self.validate_desired_state(model)
        medialive = request.aws_client_factory.medialive

        params = {"Name": model["name"], "Type": model["type"]}
        if model.get("destinations"):
            params["Destinations"] = expand_destinations(model["destinations"])
        if model.get("input_security_groups"):
            params["InputSecurityGroups"] = list(model["input_security_groups"])
        if model.get("vpc"):
            params["Vpc"] = expand_vpc(model["vpc"])
        if tags := tags_to_api(model.get("tags")):
            params["Tags"] = tags

        try:
            response = medialive.create_input(**params)
        except REMOTE_ERRORS as e:
            raise CreateFailed(self.TYPE, get_error_message(e)) from e

        model["id"] = response["Input"]["Id"]
        request.logger.info("Created %s %s (%s)", self.TYPE, model["name"], model["id"])

        return self.read(request)

    def read(
        self,
        request: ResourceRequest[MediaLiveInputProperties],
    ) -> ProgressEvent[MediaLiveInputProperties]:
        """
        Fetch resource information

        IAM permissions required:
          - medialive:DescribeInput
        """
        resource_id = self.require_resource_id(request)
        medialive = request.aws_client_factory.medialive

        try:
            response = medialive.describe_input(InputId=resource_id)
        except REMOTE_ERRORS as e:
            if is_not_found_error(e):
                raise NotFoundError(self.TYPE, resource_id) from e
            raise ReadFailed(self.TYPE, resource_id, get_error_message(e)) from e

        # the vpc settings are not part of the description, the declared ones are kept
        model = util.copy_model(request.desired_state)
        model["id"] = response.get("Id", resource_id)
        model["arn"] = response.get("Arn")
        model["name"] = response.get("Name")
        if response.get("Type"):
            model["type"] = response["Type"]
        if response.get("Destinations"):
            model["destinations"] = flatten_destinations(response["Destinations"])
        if "SecurityGroups" in response:
            model["input_security_groups"] = list(response["SecurityGroups"])
        model["input_class"] = response.get("InputClass")
        model["input_source_type"] = response.get("InputSourceType")
        model["state"] = response.get("State")
        model["attached_channels"] = response.get("AttachedChannels", [])
        model["tags"] = tags_from_api(response.get("Tags"))

        return ProgressEvent(status=OperationStatus.SUCCESS, resource_model=model)

    def update(
        self,
        request: ResourceRequest[MediaLiveInputProperties],
    ) -> ProgressEvent[MediaLiveInputProperties]:
        """
        Update a resource

        Each changed field group is sent with its own call, so that no other field is reset to a stale value.

        IAM permissions required:
          - medialive:UpdateInput
          - medialive:CreateTags
          - medialive:DeleteTags
        """
        model = request.desired_state
        previous = request.previous_state or {}
        self.validate_desired_state(model)
        self.check_replacement(request)
        resource_id = self.require_resource_id(request)
        medialive = request.aws_client_factory.medialive
        changed = self.modified_properties(previous, model)

        field_groups = {
            "destinations": lambda: {
                "Destinations": expand_destinations(model.get("destinations") or [])
            },
            "input_security_groups": lambda: {
                "InputSecurityGroups": list(model.get("input_security_groups") or [])
            },
            "name": lambda: {"Name": model["name"]},
        }
        for field_group, params in field_groups.items():
            if field_group not in changed:
                continue
            request.logger.debug("Updating %s of %s %s", field_group, self.TYPE, resource_id)
            try:
                medialive.update_input(InputId=resource_id, **params())
            except REMOTE_ERRORS as e:
                raise UpdateFailed(self.TYPE, resource_id, field_group, get_error_message(e)) from e

        if "tags" in changed:
            arn = previous.get("arn") or self.read(request).resource_model["arn"]
            try:
                update_tags(medialive, arn, previous.get("tags"), model.get("tags"))
            except REMOTE_ERRORS as e:
                raise UpdateFailed(self.TYPE, resource_id, "tags", get_error_message(e)) from e

        return self.read(request)

    def delete(
        self,
        request: ResourceRequest[MediaLiveInputProperties],
    ) -> ProgressEvent[MediaLiveInputProperties]:
        """
        Delete a resource

        IAM permissions required:
          - medialive:DeleteInput
          - medialive:DescribeInput
        """
        resource_id = self.require_resource_id(request)
        medialive = request.aws_client_factory.medialive

        try:
            medialive.delete_input(InputId=resource_id)
        except REMOTE_ERRORS as e:
            if is_not_found_error(e):
                request.logger.debug("%s %s is already gone", self.TYPE, resource_id)
                return ProgressEvent(status=OperationStatus.SUCCESS)
            raise DeleteFailed(self.TYPE, resource_id, get_error_message(e)) from e

        self.wait_for_deletion(
            request,
            resource_id,
            lambda: medialive.describe_input(InputId=resource_id),
            timeout=config.MEDIALIVE_INPUT_DELETE_TIMEOUT,
        )
        request.logger.info("Deleted %s %s", self.TYPE, resource_id)

        return ProgressEvent(status=OperationStatus.SUCCESS)

    def list(
        self,
        request: ResourceRequest[MediaLiveInputProperties],
    ) -> ProgressEvent[MediaLiveInputProperties]:
        """
        List the ids of all inputs

        IAM permissions required:
          - medialive:ListInputs
        """
        medialive = request.aws_client_factory.medialive
        models = []
        kwargs = {}
        while True:
            try:
                response = medialive.list_inputs(**kwargs)
            except REMOTE_ERRORS as e:
                raise ReadFailed(self.TYPE, None, get_error_message(e)) from e
            models += [{"id": item["Id"]} for item in response.get("Inputs", [])]
            if not response.get("NextToken"):
                break
            kwargs["NextToken"] = response["NextToken"]

        return ProgressEvent(status=OperationStatus.SUCCESS, resource_models=models)
