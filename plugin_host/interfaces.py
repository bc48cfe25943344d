
# standard imports
import typing

# third-part imports

# local imports


# Entries returned for `specs` introspection calls
SpecEntry = typing.Dict[str, typing.Any]

EventCallback = typing.Callable[..., typing.Any]


class PluginHandle(typing.Protocol):
    """
    The capabilities the host relies on from a loaded plugin

    NOTE: `handle_request` may be a plain function or a coroutine function, the dispatcher handles both
    """

    @property
    def specs(self) -> typing.Sequence[SpecEntry]: ...

    @property
    def should_cache_module(self) -> bool: ...

    @property
    def always_init(self) -> bool: ...

    def handle_request(self, procedure_name: str, call_type: str, args: typing.Sequence[typing.Any]) -> typing.Any: ...


class RpcClient(typing.Protocol):
    """
    The minimal surface of an attached rpc connection: event subscription and outgoing calls
    """

    def on(self, event: str, callback: EventCallback) -> None: ...

    async def request(self, method: str, *args: typing.Any) -> typing.Any: ...

    def notify(self, method: str, *args: typing.Any) -> None: ...


class ResponseSink(typing.Protocol):
    def send(self, result: typing.Any, is_error: bool = False) -> None: ...


LoadOptions = typing.Dict[str, typing.Any]
PluginLoader = typing.Callable[[str, typing.Optional[RpcClient], LoadOptions], typing.Optional[PluginHandle]]
