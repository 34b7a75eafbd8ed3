from typing import Optional, Type

from medialive_resources.resource_provider import (
    MediaLiveResourceProviderPlugin,
    ResourceProvider,
)


class MediaLiveInputProviderPlugin(MediaLiveResourceProviderPlugin):
    name = "AWS::MediaLive::Input"

    def __init__(self):
        self.factory: Optional[Type[ResourceProvider]] = None

    def load(self):
        from medialive_resources.services.medialive.resource_providers.aws_medialive_input import (
            MediaLiveInputProvider,
        )

        self.factory = MediaLiveInputProvider
