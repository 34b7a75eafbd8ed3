from typing import Optional, Type

from medialive_resources.resource_provider import (
    MediaLiveResourceProviderPlugin,
    ResourceProvider,
)


class MediaLiveChannelProviderPlugin(MediaLiveResourceProviderPlugin):
    name = "AWS::MediaLive::Channel"

    def __init__(self):
        self.factory: Optional[Type[ResourceProvider]] = None

    def load(self):
        from medialive_resources.services.medialive.resource_providers.aws_medialive_channel import (
            MediaLiveChannelProvider,
        )

        self.factory = MediaLiveChannelProvider
