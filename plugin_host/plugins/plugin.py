
# standard imports
import inspect
import typing

# third-part imports

# local imports
from plugin_host import errors
from plugin_host import interfaces
from plugin_host import logger
from plugin_host.plugins import registration


class Plugin(object):
    """
    A loaded plugin file and the handlers it exports

    Instances are built by the loader and owned by the host's plugin cache
    Handlers receive the plugin as their first argument, so they can use `plugin.client`
    To make calls back over the same connection
    """

    def __init__(self,
                 filename: str,
                 client: typing.Optional[interfaces.RpcClient],
                 log: typing.Optional[logger.Logger] = None,
                 dev: bool = False,
                 always_init: bool = False) -> None:
        self._filename = filename
        self._client = client
        self._log = log or logger.dummy_logger()
        self._dev = dev
        self._always_init = always_init

        self._handlers: typing.Dict[str, typing.Dict[str, registration.Registration]] = {
            call_type: {} for call_type in registration.CALL_TYPES
        }
        self._specs: typing.List[interfaces.SpecEntry] = []

    def register(self, handler: registration.Registration) -> None:
        if handler.call_type not in self._handlers:
            raise ValueError("Unknown handler type `{}` for {}".format(handler.call_type, handler.name))

        self._handlers[handler.call_type][handler.key] = handler
        self._specs.append({
            'type': handler.call_type,
            'name': handler.name,
            'sync': handler.sync,
            'opts': dict(handler.opts),
        })

    async def handle_request(self, procedure_name: str, call_type: str, args: typing.Sequence[typing.Any]) -> typing.Any:
        """
        Run the handler registered for `procedure_name` under `call_type`
        """
        handlers = self._handlers.get(call_type)
        if handlers is None:
            raise errors.PluginExecutionFailure("No handler for unknown type {}: \"{}\" in {}".format(
                call_type, procedure_name, self._filename))

        handler = handlers.get(procedure_name)
        if handler is None:
            raise errors.PluginExecutionFailure("Missing handler for {}: \"{}\" in {}".format(
                call_type, procedure_name, self._filename))

        self._log.debug("Running {} handler `{}` from {}".format(call_type, procedure_name, self._filename))
        try:
            result = handler.callback(self, *(args or []))
            if inspect.isawaitable(result):
                result = await result

        except Exception as e:
            raise errors.PluginExecutionFailure("Error in plugin for {}:{}: {}".format(
                call_type, procedure_name, e)) from e

        return result

    # Properties
    @property
    def filename(self) -> str:
        return self._filename

    @property
    def client(self) -> typing.Optional[interfaces.RpcClient]:
        return self._client

    @property
    def logger(self) -> logger.Logger:
        return self._log

    @property
    def specs(self) -> typing.List[interfaces.SpecEntry]:
        return list(self._specs)

    @property
    def dev(self) -> bool:
        return self._dev

    @property
    def should_cache_module(self) -> bool:
        return not self._dev

    @property
    def always_init(self) -> bool:
        return self._always_init
