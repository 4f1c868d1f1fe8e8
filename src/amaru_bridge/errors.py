class BridgeError(Exception):
    """Base class for errors raised by the bridge."""


class CommandError(BridgeError):
    """A presentation-layer command (clearing local files) failed."""


class NoSubscriberError(BridgeError):
    """An event was emitted on a channel nobody listens to."""


class ConfigError(BridgeError):
    """The bridge was configured with something it cannot use."""
