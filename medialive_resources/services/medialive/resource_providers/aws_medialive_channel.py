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
    check_int_between,
    check_one_of,
    check_required,
    check_size_between,
    check_string_list,
)

CHANNEL_CLASSES = ["STANDARD", "SINGLE_PIPELINE"]
LOG_LEVELS = ["ERROR", "WARNING", "INFO", "DEBUG", "DISABLED"]
OUTPUT_TYPES = ["media_package", "multiplex", "standard"]
INPUT_PREFERENCES = ["EQUAL_INPUT_PREFERENCE", "PRIMARY_INPUT_PREFERRED"]
AUDIO_SELECTOR_TYPES = ["language", "pid", "track"]
AUDIO_LANGUAGE_SELECTION_POLICIES = ["LOOSE", "STRICT"]
DEBLOCK_FILTERS = ["DISABLED", "ENABLED"]
DENOISE_FILTERS = ["DISABLED", "ENABLED"]
INPUT_FILTERS = ["AUTO", "DISABLED", "FORCED"]
SERVER_VALIDATIONS = ["CHECK_CRYPTOGRAPHY_AND_VALIDATE_NAME", "CHECK_CRYPTOGRAPHY_ONLY"]
SMPTE_2038_DATA_PREFERENCES = ["IGNORE", "PREFER"]
SOURCE_END_BEHAVIORS = ["CONTINUE", "LOOP"]
COLOR_SPACES = ["FOLLOW", "HDR10", "HLG_2020", "REC_601", "REC_709"]
COLOR_SPACE_USAGES = ["FALLBACK", "FORCE"]

# caption selector type -> key of its settings in the SelectorSettings of the API
CAPTION_SOURCE_SETTINGS = {
    "arib": "AribSourceSettings",
    "dvb_source": "DvbSubSourceSettings",
    "embedded": "EmbeddedSourceSettings",
    "scte20": "Scte20SourceSettings",
    "scte27": "Scte27SourceSettings",
    "teletext": "TeletextSourceSettings",
}

MAX_PID = 8191
MAX_INT = 2**31 - 1

# values the service reports for fields which were not set on creation
DEFAULT_LOG_LEVEL = "DISABLED"
INPUT_SETTINGS_DEFAULTS = {
    "deblock_filter": "DISABLED",
    "denoise_filter": "DISABLED",
    "filter_strength": 1,
    "input_filter": "AUTO",
    "smpte_2038_data_preference": "IGNORE",
    "source_end_behavior": "CONTINUE",
}
DEFAULT_SERVER_VALIDATION = "CHECK_CRYPTOGRAPHY_AND_VALIDATE_NAME"


class OutputDestinationSettings(TypedDict):
    url: Optional[str]
    stream_name: Optional[str]
    username: Optional[str]
    password_param: Optional[str]


class OutputDestination(TypedDict):
    id: Optional[str]
    type: Optional[str]
    media_package_channel_ids: Optional[list[str]]
    multiplex_id: Optional[str]
    multiplex_program_name: Optional[str]
    settings: Optional[list[OutputDestinationSettings]]


class AutomaticInputFailoverSettings(TypedDict):
    input_preference: Optional[str]
    secondary_input_id: Optional[str]


class AudioSelector(TypedDict):
    name: Optional[str]
    type: Optional[str]
    language_code: Optional[str]
    language_selection_policy: Optional[str]
    pid: Optional[int]
    tracks: Optional[list[int]]


class CaptionSelector(TypedDict):
    name: Optional[str]
    type: Optional[str]
    language_code: Optional[str]
    pid: Optional[int]
    upconvert_608: Optional[bool]
    detect_scte20: Optional[bool]
    channel: Optional[int]
    page: Optional[str]


class NetworkInputSettings(TypedDict):
    server_validation: Optional[str]
    hls_bandwidth: Optional[int]
    hls_buffer_segments: Optional[int]
    hls_retries: Optional[int]
    hls_retry_interval: Optional[int]


class VideoSelector(TypedDict):
    color_space: Optional[str]
    color_space_usage: Optional[str]
    pid: Optional[int]
    program_id: Optional[int]


class InputSettings(TypedDict):
    audio_selectors: Optional[list[AudioSelector]]
    caption_selectors: Optional[list[CaptionSelector]]
    deblock_filter: Optional[str]
    denoise_filter: Optional[str]
    filter_strength: Optional[int]
    input_filter: Optional[str]
    network_input_settings: Optional[NetworkInputSettings]
    smpte_2038_data_preference: Optional[str]
    source_end_behavior: Optional[str]
    video_selector: Optional[VideoSelector]


class InputAttachment(TypedDict):
    input_id: Optional[str]
    name: Optional[str]
    automatic_input_failover_settings: Optional[AutomaticInputFailoverSettings]
    input_settings: Optional[InputSettings]


class MediaLiveChannelProperties(TypedDict):
    channel_class: Optional[str]
    destinations: Optional[list[OutputDestination]]
    input_attachments: Optional[list[InputAttachment]]
    log_level: Optional[str]
    name: Optional[str]
    role_arn: Optional[str]
    tags: Optional[dict[str, str]]
    # read-only
    id: Optional[str]
    arn: Optional[str]
    state: Optional[str]
    pipelines_running_count: Optional[int]
    egress_endpoints: Optional[list[str]]


#
# validation
#


def _validate_destination(destination: OutputDestination, path: str) -> list[str]:
    violations = check_required(destination, ["type"], path)
    violations += check_one_of(destination.get("type"), OUTPUT_TYPES, f"{path}.type")
    violations += check_string_list(
        destination.get("media_package_channel_ids"), f"{path}.media_package_channel_ids"
    )
    return violations


def _validate_audio_selector(selector: AudioSelector, path: str) -> list[str]:
    violations = check_required(selector, ["name", "type"], path)
    violations += check_one_of(selector.get("type"), AUDIO_SELECTOR_TYPES, f"{path}.type")
    violations += check_one_of(
        selector.get("language_selection_policy"),
        AUDIO_LANGUAGE_SELECTION_POLICIES,
        f"{path}.language_selection_policy",
    )
    violations += check_int_between(selector.get("pid"), 0, MAX_PID, f"{path}.pid")

    match selector.get("type"):
        case "language":
            violations += check_required(selector, ["language_code"], path)
        case "pid":
            violations += check_required(selector, ["pid"], path)
        case "track":
            violations += check_required(selector, ["tracks"], path)
            violations += check_size_between(selector.get("tracks"), f"{path}.tracks", minimum=1)
            for i, track in enumerate(selector.get("tracks") or []):
                violations += check_int_between(track, 1, MAX_INT, f"{path}.tracks[{i}]")
    return violations


def _validate_caption_selector(selector: CaptionSelector, path: str) -> list[str]:
    violations = check_required(selector, ["name", "type"], path)
    violations += check_one_of(selector.get("type"), list(CAPTION_SOURCE_SETTINGS), f"{path}.type")
    violations += check_int_between(selector.get("pid"), 1, MAX_PID, f"{path}.pid")
    violations += check_int_between(selector.get("channel"), 1, 4, f"{path}.channel")
    for flag in ("upconvert_608", "detect_scte20"):
        value = selector.get(flag)
        if value is not None and not isinstance(value, bool):
            violations.append(f"{path}.{flag}: expected a boolean, got {value!r}")
    return violations


def _validate_input_settings(settings: InputSettings, path: str) -> list[str]:
    violations = []
    for i, selector in enumerate(settings.get("audio_selectors") or []):
        violations += _validate_audio_selector(selector, f"{path}.audio_selectors[{i}]")
    for i, selector in enumerate(settings.get("caption_selectors") or []):
        violations += _validate_caption_selector(selector, f"{path}.caption_selectors[{i}]")

    violations += check_one_of(settings.get("deblock_filter"), DEBLOCK_FILTERS, f"{path}.deblock_filter")
    violations += check_one_of(settings.get("denoise_filter"), DENOISE_FILTERS, f"{path}.denoise_filter")
    violations += check_int_between(settings.get("filter_strength"), 1, 5, f"{path}.filter_strength")
    violations += check_one_of(settings.get("input_filter"), INPUT_FILTERS, f"{path}.input_filter")
    violations += check_one_of(
        settings.get("smpte_2038_data_preference"),
        SMPTE_2038_DATA_PREFERENCES,
        f"{path}.smpte_2038_data_preference",
    )
    violations += check_one_of(
        settings.get("source_end_behavior"), SOURCE_END_BEHAVIORS, f"{path}.source_end_behavior"
    )

    if network := settings.get("network_input_settings"):
        network_path = f"{path}.network_input_settings"
        violations += check_one_of(
            network.get("server_validation"), SERVER_VALIDATIONS, f"{network_path}.server_validation"
        )
        for key in ("hls_bandwidth", "hls_buffer_segments", "hls_retries", "hls_retry_interval"):
            violations += check_int_between(network.get(key), 0, MAX_INT, f"{network_path}.{key}")

    if video := settings.get("video_selector"):
        video_path = f"{path}.video_selector"
        violations += check_required(video, ["color_space", "color_space_usage"], video_path)
        violations += check_one_of(video.get("color_space"), COLOR_SPACES, f"{video_path}.color_space")
        violations += check_one_of(
            video.get("color_space_usage"), COLOR_SPACE_USAGES, f"{video_path}.color_space_usage"
        )
        violations += check_int_between(video.get("pid"), 0, MAX_PID, f"{video_path}.pid")
        violations += check_int_between(video.get("program_id"), 0, MAX_INT, f"{video_path}.program_id")
    return violations


def _validate_input_attachment(attachment: InputAttachment, path: str) -> list[str]:
    violations = check_required(attachment, ["input_id"], path)
    if failover := attachment.get("automatic_input_failover_settings"):
        failover_path = f"{path}.automatic_input_failover_settings"
        violations += check_required(failover, ["input_preference", "secondary_input_id"], failover_path)
        violations += check_one_of(
            failover.get("input_preference"), INPUT_PREFERENCES, f"{failover_path}.input_preference"
        )
    if settings := attachment.get("input_settings"):
        violations += _validate_input_settings(settings, f"{path}.input_settings")
    return violations


def validate_channel_properties(properties: MediaLiveChannelProperties) -> list[str]:
    violations = check_required(properties, ["channel_class", "destinations", "input_attachments"])
    violations += check_one_of(properties.get("channel_class"), CHANNEL_CLASSES, "channel_class")
    violations += check_one_of(properties.get("log_level"), LOG_LEVELS, "log_level")

    for i, destination in enumerate(properties.get("destinations") or []):
        violations += _validate_destination(destination, f"destinations[{i}]")

    attachments = properties.get("input_attachments")
    violations += check_size_between(attachments, "input_attachments", minimum=1, maximum=2)
    for i, attachment in enumerate(attachments or []):
        violations += _validate_input_attachment(attachment, f"input_attachments[{i}]")

    return violations


#
# desired state -> API request shapes
#


def expand_destination(destination: OutputDestination) -> dict:
    result = {"Id": destination.get("id")}
    match destination["type"]:
        case "media_package":
            result["MediaPackageSettings"] = [
                {"ChannelId": channel_id}
                for channel_id in destination.get("media_package_channel_ids") or []
            ]
        case "multiplex":
            result["MultiplexSettings"] = {
                "MultiplexId": destination.get("multiplex_id"),
                "ProgramName": destination.get("multiplex_program_name"),
            }
        case _:
            result["Settings"] = [
                {
                    "Url": settings.get("url"),
                    "StreamName": settings.get("stream_name"),
                    "Username": settings.get("username"),
                    "PasswordParam": settings.get("password_param"),
                }
                for settings in destination.get("settings") or []
            ]
    return util.remove_none_values(result)


def expand_audio_selector(selector: AudioSelector) -> dict:
    match selector["type"]:
        case "language":
            settings = {
                "AudioLanguageSelection": {
                    "LanguageCode": selector.get("language_code"),
                    "LanguageSelectionPolicy": selector.get("language_selection_policy"),
                }
            }
        case "pid":
            settings = {"AudioPidSelection": {"Pid": selector.get("pid")}}
        case _:
            settings = {
                "AudioTrackSelection": {
                    "Tracks": [{"Track": track} for track in selector.get("tracks") or []]
                }
            }
    return util.remove_none_values({"Name": selector["name"], "SelectorSettings": settings})


def expand_caption_selector(selector: CaptionSelector) -> dict:
    caption_type = selector["type"]
    settings = {}
    if caption_type in ("dvb_source", "scte27"):
        settings["Pid"] = selector.get("pid")
    if caption_type in ("embedded", "scte20"):
        if selector.get("upconvert_608") is not None:
            settings["Convert608To708"] = "UPCONVERT" if selector["upconvert_608"] else "DISABLED"
        settings["Source608ChannelNumber"] = selector.get("channel")
    if caption_type == "embedded" and selector.get("detect_scte20") is not None:
        settings["Scte20Detection"] = "AUTO" if selector["detect_scte20"] else "OFF"
    if caption_type == "teletext":
        settings["PageNumber"] = selector.get("page")

    return util.remove_none_values(
        {
            "Name": selector["name"],
            "LanguageCode": selector.get("language_code"),
            "SelectorSettings": {CAPTION_SOURCE_SETTINGS[caption_type]: settings},
        }
    )


def expand_input_settings(settings: InputSettings) -> dict:
    result = {
        "DeblockFilter": settings.get("deblock_filter"),
        "DenoiseFilter": settings.get("denoise_filter"),
        "FilterStrength": settings.get("filter_strength"),
        "InputFilter": settings.get("input_filter"),
        "Smpte2038DataPreference": settings.get("smpte_2038_data_preference"),
        "SourceEndBehavior": settings.get("source_end_behavior"),
    }
    if settings.get("audio_selectors") is not None:
        result["AudioSelectors"] = [expand_audio_selector(s) for s in settings["audio_selectors"]]
    if settings.get("caption_selectors") is not None:
        result["CaptionSelectors"] = [expand_caption_selector(s) for s in settings["caption_selectors"]]

    if network := settings.get("network_input_settings"):
        hls = util.remove_none_values(
            {
                "Bandwidth": network.get("hls_bandwidth"),
                "BufferSegments": network.get("hls_buffer_segments"),
                "Retries": network.get("hls_retries"),
                "RetryInterval": network.get("hls_retry_interval"),
            }
        )
        result["NetworkInputSettings"] = {
            "HlsInputSettings": hls or None,
            "ServerValidation": network.get("server_validation"),
        }

    if video := settings.get("video_selector"):
        selector_settings = None
        if video.get("pid") is not None:
            selector_settings = {"VideoSelectorPid": {"Pid": video["pid"]}}
        elif video.get("program_id") is not None:
            selector_settings = {"VideoSelectorProgramId": {"ProgramId": video["program_id"]}}
        result["VideoSelector"] = {
            "ColorSpace": video.get("color_space"),
            "ColorSpaceUsage": video.get("color_space_usage"),
            "SelectorSettings": selector_settings,
        }
    return util.remove_none_values(result)


def expand_input_attachment(attachment: InputAttachment) -> dict:
    result = {
        "InputId": attachment["input_id"],
        "InputAttachmentName": attachment.get("name"),
    }
    if failover := attachment.get("automatic_input_failover_settings"):
        result["AutomaticInputFailoverSettings"] = {
            "InputPreference": failover.get("input_preference"),
            "SecondaryInputId": failover.get("secondary_input_id"),
        }
    if settings := attachment.get("input_settings"):
        result["InputSettings"] = expand_input_settings(settings)
    return util.remove_none_values(result)


#
# API response shapes -> observed state
#


def flatten_destination(destination: dict) -> OutputDestination:
    result = {"id": destination.get("Id")}
    if destination.get("MediaPackageSettings"):
        result["type"] = "media_package"
        result["media_package_channel_ids"] = [
            settings["ChannelId"] for settings in destination["MediaPackageSettings"]
        ]
    elif destination.get("MultiplexSettings"):
        result["type"] = "multiplex"
        result["multiplex_id"] = destination["MultiplexSettings"].get("MultiplexId")
        result["multiplex_program_name"] = destination["MultiplexSettings"].get("ProgramName")
    else:
        result["type"] = "standard"
        result["settings"] = [
            {
                "url": settings.get("Url"),
                "stream_name": settings.get("StreamName"),
                "username": settings.get("Username"),
                "password_param": settings.get("PasswordParam"),
            }
            for settings in destination.get("Settings", [])
        ]
    return util.remove_none_values(result)


def flatten_audio_selector(selector: dict) -> AudioSelector:
    settings = selector.get("SelectorSettings") or {}
    result = {"name": selector.get("Name")}
    if language := settings.get("AudioLanguageSelection"):
        result["type"] = "language"
        result["language_code"] = language.get("LanguageCode")
        result["language_selection_policy"] = language.get("LanguageSelectionPolicy")
    elif pid := settings.get("AudioPidSelection"):
        result["type"] = "pid"
        result["pid"] = pid.get("Pid")
    elif track := settings.get("AudioTrackSelection"):
        result["type"] = "track"
        result["tracks"] = [t["Track"] for t in track.get("Tracks", [])]
    return util.remove_none_values(result)


def flatten_caption_selector(selector: dict) -> CaptionSelector:
    result = {"name": selector.get("Name"), "language_code": selector.get("LanguageCode")}
    selector_settings = selector.get("SelectorSettings") or {}
    for caption_type, key in CAPTION_SOURCE_SETTINGS.items():
        if key not in selector_settings:
            continue
        settings = selector_settings[key] or {}
        result["type"] = caption_type
        result["pid"] = settings.get("Pid")
        result["channel"] = settings.get("Source608ChannelNumber")
        result["page"] = settings.get("PageNumber")
        if "Convert608To708" in settings:
            result["upconvert_608"] = settings["Convert608To708"] == "UPCONVERT"
        if "Scte20Detection" in settings:
            result["detect_scte20"] = settings["Scte20Detection"] == "AUTO"
        break
    return util.remove_none_values(result)


def flatten_input_settings(settings: dict) -> InputSettings:
    result = {
        "deblock_filter": settings.get("DeblockFilter"),
        "denoise_filter": settings.get("DenoiseFilter"),
        "filter_strength": settings.get("FilterStrength"),
        "input_filter": settings.get("InputFilter"),
        "smpte_2038_data_preference": settings.get("Smpte2038DataPreference"),
        "source_end_behavior": settings.get("SourceEndBehavior"),
    }
    if "AudioSelectors" in settings:
        result["audio_selectors"] = [flatten_audio_selector(s) for s in settings["AudioSelectors"]]
    if "CaptionSelectors" in settings:
        result["caption_selectors"] = [
            flatten_caption_selector(s) for s in settings["CaptionSelectors"]
        ]
    if network := settings.get("NetworkInputSettings"):
        hls = network.get("HlsInputSettings") or {}
        result["network_input_settings"] = util.remove_none_values(
            {
                "server_validation": network.get("ServerValidation"),
                "hls_bandwidth": hls.get("Bandwidth"),
                "hls_buffer_segments": hls.get("BufferSegments"),
                "hls_retries": hls.get("Retries"),
                "hls_retry_interval": hls.get("RetryInterval"),
            }
        )
    if video := settings.get("VideoSelector"):
        selector_settings = video.get("SelectorSettings") or {}
        result["video_selector"] = util.remove_none_values(
            {
                "color_space": video.get("ColorSpace"),
                "color_space_usage": video.get("ColorSpaceUsage"),
                "pid": (selector_settings.get("VideoSelectorPid") or {}).get("Pid"),
                "program_id": (selector_settings.get("VideoSelectorProgramId") or {}).get("ProgramId"),
            }
        )
    return util.remove_none_values(result)


def flatten_input_attachment(attachment: dict) -> InputAttachment:
    result = {
        "input_id": attachment.get("InputId"),
        "name": attachment.get("InputAttachmentName"),
    }
    if failover := attachment.get("AutomaticInputFailoverSettings"):
        result["automatic_input_failover_settings"] = {
            "input_preference": failover.get("InputPreference"),
            "secondary_input_id": failover.get("SecondaryInputId"),
        }
    if settings := attachment.get("InputSettings"):
        result["input_settings"] = flatten_input_settings(settings)
    return util.remove_none_values(result)


def without_service_defaults(attachment: InputAttachment) -> InputAttachment:
    """Drops the input settings which hold the value the service uses when they are not set."""
    settings = attachment.get("input_settings")
    if not settings:
        return attachment

    settings = {
        key: value
        for key, value in settings.items()
        if key not in INPUT_SETTINGS_DEFAULTS or INPUT_SETTINGS_DEFAULTS[key] != value
    }
    network = settings.get("network_input_settings")
    if network and network.get("server_validation") == DEFAULT_SERVER_VALIDATION:
        settings["network_input_settings"] = {
            k: v for k, v in network.items() if k != "server_validation"
        }
    return {**attachment, "input_settings": settings}


class MediaLiveChannelProvider(ResourceProvider[MediaLiveChannelProperties]):
    TYPE = "AWS::MediaLive::Channel"  # Autogenerated. Don't change
    SCHEMA = util.get_schema_path(Path(__file__))  # Autogenerated. Don't change

    def validate(self, properties: MediaLiveChannelProperties) -> list[str]:
        return validate_channel_properties(properties)

    def declared_state(self, properties: Optional[MediaLiveChannelProperties]) -> dict:
        state = dict(properties or {})
        # a default read back from the service is the same as leaving the field unset
        if state.get("log_level") == DEFAULT_LOG_LEVEL:
            del state["log_level"]
        if state.get("input_attachments"):
            state["input_attachments"] = [
                without_service_defaults(attachment) for attachment in state["input_attachments"]
            ]
        return state

    def create(
        self,
        request: ResourceRequest[MediaLiveChannelProperties],
    ) -> ProgressEvent[MediaLiveChannelProperties]:
        """
        Create a new resource.

        Primary identifier fields:
          - /properties/id

        Required properties:
          - channel_class
          - destinations
          - input_attachments

        Read-only properties:
          - /properties/id
          - /properties/arn
          - /properties/state
          - /properties/pipelines_running_count
          - /properties/egress_endpoints

        IAM permissions required:
          - medialive:CreateChannel
          - medialive:DescribeChannel
          - medialive:CreateTags
          - iam:PassRole
        """
        model = request.desired_state
        self.validate_desired_state(model)
        medialive = request.aws_client_factory.medialive

        params = {
            "ChannelClass": model["channel_class"],
            "Destinations": [expand_destination(d) for d in model["destinations"]],
            "InputAttachments": [expand_input_attachment(a) for a in model["input_attachments"]],
            "RequestId": request.request_token,
        }
        if model.get("log_level"):
            params["LogLevel"] = model["log_level"]
        if model.get("name"):
            params["Name"] = model["name"]
        if model.get("role_arn"):
            params["RoleArn"] = model["role_arn"]
        if tags := tags_to_api(model.get("tags")):
            params["Tags"] = tags

        try:
            response = medialive.create_channel(**params)
        except REMOTE_ERRORS as e:
            raise CreateFailed(self.TYPE, get_error_message(e)) from e

        model["id"] = response["Channel"]["Id"]
        request.logger.info("Created %s %s", self.TYPE, model["id"])

        return self.read(request)

    def read(
        self,
        request: ResourceRequest[MediaLiveChannelProperties],
    ) -> ProgressEvent[MediaLiveChannelProperties]:
        """
        Fetch resource information

        IAM permissions required:
          - medialive:DescribeChannel
        """
        resource_id = self.require_resource_id(request)
        medialive = request.aws_client_factory.medialive

        try:
            response = medialive.describe_channel(ChannelId=resource_id)
        except REMOTE_ERRORS as e:
            if is_not_found_error(e):
                raise NotFoundError(self.TYPE, resource_id) from e
            raise ReadFailed(self.TYPE, resource_id, get_error_message(e)) from e

        model = util.copy_model(request.desired_state)
        model["id"] = response.get("Id", resource_id)
        model["arn"] = response.get("Arn")
        model["channel_class"] = response.get("ChannelClass")
        model["destinations"] = [flatten_destination(d) for d in response.get("Destinations", [])]
        model["input_attachments"] = [
            flatten_input_attachment(a) for a in response.get("InputAttachments", [])
        ]
        model["log_level"] = response.get("LogLevel")
        model["name"] = response.get("Name")
        model["role_arn"] = response.get("RoleArn")
        model["state"] = response.get("State")
        model["pipelines_running_count"] = response.get("PipelinesRunningCount")
        model["egress_endpoints"] = [
            endpoint["SourceIp"] for endpoint in response.get("EgressEndpoints", []) if "SourceIp" in endpoint
        ]
        model["tags"] = tags_from_api(response.get("Tags"))

        return ProgressEvent(status=OperationStatus.SUCCESS, resource_model=model)

    def update(
        self,
        request: ResourceRequest[MediaLiveChannelProperties],
    ) -> ProgressEvent[MediaLiveChannelProperties]:
        """
        Update a resource

        The channel class is changed with its dedicated call, every other changed field group is sent with
        its own update call.

        IAM permissions required:
          - medialive:UpdateChannel
          - medialive:UpdateChannelClass
          - medialive:CreateTags
          - medialive:DeleteTags
          - iam:PassRole
        """
        model = request.desired_state
        previous = request.previous_state or {}
        self.validate_desired_state(model)
        self.check_replacement(request)
        resource_id = self.require_resource_id(request)
        medialive = request.aws_client_factory.medialive
        changed = self.modified_properties(previous, model)

        if "channel_class" in changed:
            request.logger.debug("Updating channel_class of %s %s", self.TYPE, resource_id)
            try:
                medialive.update_channel_class(
                    ChannelId=resource_id, ChannelClass=model["channel_class"]
                )
            except REMOTE_ERRORS as e:
                raise UpdateFailed(
                    self.TYPE, resource_id, "channel_class", get_error_message(e)
                ) from e

        field_groups = {
            "destinations": lambda: {
                "Destinations": [expand_destination(d) for d in model["destinations"]]
            },
            "input_attachments": lambda: {
                "InputAttachments": [expand_input_attachment(a) for a in model["input_attachments"]]
            },
            "log_level": lambda: {"LogLevel": model.get("log_level") or "DISABLED"},
            "name": lambda: {"Name": model.get("name") or ""},
            "role_arn": lambda: {"RoleArn": model.get("role_arn") or ""},
        }
        for field_group, params in field_groups.items():
            if field_group not in changed:
                continue
            request.logger.debug("Updating %s of %s %s", field_group, self.TYPE, resource_id)
            try:
                medialive.update_channel(ChannelId=resource_id, **params())
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
        request: ResourceRequest[MediaLiveChannelProperties],
    ) -> ProgressEvent[MediaLiveChannelProperties]:
        """
        Delete a resource

        IAM permissions required:
          - medialive:DeleteChannel
          - medialive:DescribeChannel
        """
        resource_id = self.require_resource_id(request)
        medialive = request.aws_client_factory.medialive

        try:
            medialive.delete_channel(ChannelId=resource_id)
        except REMOTE_ERRORS as e:
            if is_not_found_error(e):
                request.logger.debug("%s %s is already gone", self.TYPE, resource_id)
                return ProgressEvent(status=OperationStatus.SUCCESS)
            raise DeleteFailed(self.TYPE, resource_id, get_error_message(e)) from e

        self.wait_for_deletion(
            request,
            resource_id,
            lambda: medialive.describe_channel(ChannelId=resource_id),
            timeout=config.MEDIALIVE_CHANNEL_DELETE_TIMEOUT,
        )
        request.logger.info("Deleted %s %s", self.TYPE, resource_id)

        return ProgressEvent(status=OperationStatus.SUCCESS)

    def list(
        self,
        request: ResourceRequest[MediaLiveChannelProperties],
    ) -> ProgressEvent[MediaLiveChannelProperties]:
        """
        List the ids of all channels

        IAM permissions required:
          - medialive:ListChannels
        """
        medialive = request.aws_client_factory.medialive
        models = []
        kwargs = {}
        while True:
            try:
                response = medialive.list_channels(**kwargs)
            except REMOTE_ERRORS as e:
                raise ReadFailed(self.TYPE, None, get_error_message(e)) from e
            models += [{"id": channel["Id"]} for channel in response.get("Channels", [])]
            if not response.get("NextToken"):
                break
            kwargs["NextToken"] = response["NextToken"]

        return ProgressEvent(status=OperationStatus.SUCCESS, resource_models=models)
