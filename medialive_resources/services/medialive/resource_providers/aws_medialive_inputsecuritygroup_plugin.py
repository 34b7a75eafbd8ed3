from typing import Optional, Type

from medialive_resources.resource_provider import (
    MediaLiveResourceProviderPlugin,
    ResourceProvider,
)


class MediaLiveInputSecurityGroupProviderPlugin(MediaLiveResourceProviderPlugin):
    name = "AWS::MediaLive::InputSecurityGroup"

    def __init__(self):
        self.factory: Optional[Type[ResourceProvider]] = None

    def load(self):
        from medialive_resources.services.medialive.resource_providers.aws_medialive_inputsecuritygroup import (
            MediaLiveInputSecurityGroupProvider,
        )

        self.factory = MediaLiveInputSecurityGroupProvider
