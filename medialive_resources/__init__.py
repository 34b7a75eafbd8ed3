from medialive_resources.version import __version__  # noqa
