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
    check_ipv4_cidr_network_address,
    check_required,
    check_size_between,
    check_string_list,
)


class MediaLiveInputSecurityGroupProperties(TypedDict):
    ipv4_whitelist: Optional[list[str]]
    tags: Optional[dict[str, str]]
    # read-only
    id: Optional[str]
    arn: Optional[str]
    state: Optional[str]
    inputs: Optional[list[str]]


def validate_input_security_group_properties(
    properties: MediaLiveInputSecurityGroupProperties,
) -> list[str]:
    violations = check_required(properties, ["ipv4_whitelist"])
    whitelist = properties.get("ipv4_whitelist")
    violations += check_size_between(whitelist, "ipv4_whitelist", minimum=1)
    violations += check_string_list(whitelist, "ipv4_whitelist")
    for i, cidr in enumerate(whitelist or []):
        if isinstance(cidr, str):
            violations += check_ipv4_cidr_network_address(cidr, f"ipv4_whitelist[{i}]")
    return violations


def expand_whitelist_rules(cidrs: list[str]) -> list[dict]:
    return [{"Cidr": cidr} for cidr in cidrs]


class MediaLiveInputSecurityGroupProvider(ResourceProvider[MediaLiveInputSecurityGroupProperties]):
    TYPE = "AWS::MediaLive::InputSecurityGroup"  # Autogenerated. Don't change
    SCHEMA = util.get_schema_path(Path(__file__))  # Autogenerated. Don't change

    def validate(self, properties: MediaLiveInputSecurityGroupProperties) -> list[str]:
        return validate_input_security_group_properties(properties)

    def create(
        self,
        request: ResourceRequest[MediaLiveInputSecurityGroupProperties],
    ) -> ProgressEvent[MediaLiveInputSecurityGroupProperties]:
        """
        Create a new resource.

        Primary identifier fields:
          - /properties/id

        Required properties:
          - ipv4_whitelist

        Read-only properties:
          - /properties/id
          - /properties/arn
          - /properties/state
          - /properties/inputs

        IAM permissions required:
          - medialive:CreateInputSecurityGroup
          - medialive:DescribeInputSecurityGroup
          - medialive:CreateTags
        """
        model = request.desired_state
        self.validate_desired_state(model)
        medialive = request.aws_client_factory.medialive

        params = {"WhitelistRules": expand_whitelist_rules(model["ipv4_whitelist"])}
        if tags := tags_to_api(model.get("tags")):
            params["Tags"] = tags

        try:
            response = medialive.create_input_security_group(**params)
        except REMOTE_ERRORS as e:
            raise CreateFailed(self.TYPE, get_error_message(e)) from e

        model["id"] = response["SecurityGroup"]["Id"]
        request.logger.info("Created %s %s", self.TYPE, model["id"])

        return self.read(request)

    def read(
        self,
        request: ResourceRequest[MediaLiveInputSecurityGroupProperties],
    ) -> ProgressEvent[MediaLiveInputSecurityGroupProperties]:
        """
        Fetch resource information

        IAM permissions required:
          - medialive:DescribeInputSecurityGroup
        """
        resource_id = self.require_resource_id(request)
        medialive = request.aws_client_factory.medialive

        try:
            response = medialive.describe_input_security_group(InputSecurityGroupId=resource_id)
        except REMOTE_ERRORS as e:
            if is_not_found_error(e):
                raise NotFoundError(self.TYPE, resource_id) from e
            raise ReadFailed(self.TYPE, resource_id, get_error_message(e)) from e

        model = util.copy_model(request.desired_state)
        model["id"] = response.get("Id", resource_id)
        model["arn"] = response.get("Arn")
        model["state"] = response.get("State")
        model["inputs"] = response.get("Inputs", [])
        model["ipv4_whitelist"] = [rule["Cidr"] for rule in response.get("WhitelistRules", [])]
        model["tags"] = tags_from_api(response.get("Tags"))

        return ProgressEvent(status=OperationStatus.SUCCESS, resource_model=model)

    def update(
        self,
        request: ResourceRequest[MediaLiveInputSecurityGroupProperties],
    ) -> ProgressEvent[MediaLiveInputSecurityGroupProperties]:
        """
        Update a resource

        IAM permissions required:
          - medialive:UpdateInputSecurityGroup
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

        if "ipv4_whitelist" in changed:
            try:
                medialive.update_input_security_group(
                    InputSecurityGroupId=resource_id,
                    WhitelistRules=expand_whitelist_rules(model["ipv4_whitelist"]),
                )
            except REMOTE_ERRORS as e:
                raise UpdateFailed(
                    self.TYPE, resource_id, "ipv4_whitelist", get_error_message(e)
                ) from e

        if "tags" in changed:
            arn = previous.get("arn") or self.read(request).resource_model["arn"]
            try:
                update_tags(medialive, arn, previous.get("tags"), model.get("tags"))
            except REMOTE_ERRORS as e:
                raise UpdateFailed(self.TYPE, resource_id, "tags", get_error_message(e)) from e

        return self.read(request)

    def delete(
        self,
        request: ResourceRequest[MediaLiveInputSecurityGroupProperties],
    ) -> ProgressEvent[MediaLiveInputSecurityGroupProperties]:
        """
        Delete a resource

        IAM permissions required:
          - medialive:DeleteInputSecurityGroup
          - medialive:DescribeInputSecurityGroup
        """
        resource_id = self.require_resource_id(request)
        medialive = request.aws_client_factory.medialive

        try:
            medialive.delete_input_security_group(InputSecurityGroupId=resource_id)
        except REMOTE_ERRORS as e:
            if is_not_found_error(e):
                request.logger.debug("%s %s is already gone", self.TYPE, resource_id)
                return ProgressEvent(status=OperationStatus.SUCCESS)
            raise DeleteFailed(self.TYPE, resource_id, get_error_message(e)) from e

        self.wait_for_deletion(
            request,
            resource_id,
            lambda: medialive.describe_input_security_group(InputSecurityGroupId=resource_id),
            timeout=config.MEDIALIVE_INPUT_SECURITY_GROUP_DELETE_TIMEOUT,
        )
        request.logger.info("Deleted %s %s", self.TYPE, resource_id)

        return ProgressEvent(status=OperationStatus.SUCCESS)

    def list(
        self,
        request: ResourceRequest[MediaLiveInputSecurityGroupProperties],
    ) -> ProgressEvent[MediaLiveInputSecurityGroupProperties]:
        """
        List the ids of all input security groups

        IAM permissions required:
          - medialive:ListInputSecurityGroups
        """
        medialive = request.aws_client_factory.medialive
        models = []
        kwargs = {}
        while True:
            try:
                response = medialive.list_input_security_groups(**kwargs)
            except REMOTE_ERRORS as e:
                raise ReadFailed(self.TYPE, None, get_error_message(e)) from e
            models += [{"id": group["Id"]} for group in response.get("InputSecurityGroups", [])]
            if not response.get("NextToken"):
                break
            kwargs["NextToken"] = response["NextToken"]

        return ProgressEvent(status=OperationStatus.SUCCESS, resource_models=models)
