
# standard imports

# third-part imports

# local imports


class HostError(Exception):
    """
    Base class for all errors raised by the plugin host
    """


class PluginNotFound(HostError):
    """
    Raised when a dispatched call names a plugin file that could not be loaded
    """

    def __init__(self, filename: str) -> None:
        super().__init__("Could not load plugin: {}".format(filename))
        self.filename = filename


class PluginExecutionFailure(HostError):
    """
    Raised when a plugin has no handler for a call or its handler fails

    The original plugin exception (if any) is chained as `__cause__`
    """


class TransportError(HostError):
    """
    Raised for malformed frames/messages or error responses on the rpc connection
    """


class ConfigError(HostError):
    """
    Raised when the host configuration can't be read or validated
    """
