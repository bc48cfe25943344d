
# standard imports
import inspect
import typing

# third-part imports

# local imports
from plugin_host import errors
from plugin_host import interfaces
from plugin_host import logger
from plugin_host import method as method_parser
from plugin_host import transport
from plugin_host.plugins import cache


# Methods the editor sends to the host itself, rather than to a plugin
POLL = 'poll'
SPECS = 'specs'


class Outcome(typing.NamedTuple):
    """
    Result of handling a notification: either a value, or the exception that stopped it
    """
    value: typing.Any = None
    error: typing.Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Host(object):
    """
    Routes editor calls to the plugin files they address

    `poll` is the editor's handshake, `specs` asks what a plugin file exports
    Everything else is a `<filename>:<call_type>:<procedure>` call dispatched to the plugin
    """

    def __init__(self,
                 loader: interfaces.PluginLoader,
                 log: typing.Optional[logger.Logger] = None,
                 platform: typing.Optional[str] = None,
                 load_options: typing.Optional[interfaces.LoadOptions] = None) -> None:
        self._log = log or logger.dummy_logger()
        self._platform = platform
        self._load_options = dict(load_options or {})
        self._cache = cache.PluginCache(loader, self._log)

        self.client: typing.Optional[interfaces.RpcClient] = None

    @property
    def cache(self) -> cache.PluginCache:
        return self._cache

    def get_plugin(self, filename: str, options: typing.Optional[interfaces.LoadOptions] = None) -> typing.Optional[interfaces.PluginHandle]:
        return self._cache.resolve(filename, self.client, {**self._load_options, **(options or {})})

    async def handle_plugin(self, method: str, args: typing.Sequence[typing.Any]) -> typing.Any:
        """
        Route the call to the plugin named in the method and return its result

        Methods with the reserved editor prefix (eg. buffer attach notifications) are ignored
        Raises `PluginNotFound` if the plugin file can't be loaded
        """
        if method_parser.is_reserved(method):
            return None
        self._log.debug("host.handle_plugin: {}".format(method))

        call = method_parser.parse_method(method, self._platform)
        plugin = self.get_plugin(call.filename)
        if plugin is None:
            err = errors.PluginNotFound(call.filename)
            self._log.error(str(err))
            raise err

        result = plugin.handle_request(call.procedure_name, call.call_type, args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def handle_request_specs(self, method: str, args: typing.Sequence[typing.Any], res: interfaces.ResponseSink) -> None:
        """
        Send the specs exported by the plugin named in `args[0]`

        Plugins that can't be loaded report no specs rather than an error
        """
        filename = args[0] if args else ''
        self._log.debug("requested specs for {}".format(filename))

        specs: typing.List[interfaces.SpecEntry] = []
        try:
            plugin = self.get_plugin(str(filename))
            if plugin is not None:
                specs = list(plugin.specs or [])

        except Exception as e:
            self._log.warning("Failed to resolve plugin {} for specs: {}".format(filename, e))

        res.send(specs)
        self._log.debug("specs: {}".format(specs))

    async def handler(self, method: str, args: typing.Sequence[typing.Any], res: interfaces.ResponseSink) -> None:
        """
        Entrypoint for requests. Sends exactly one response through `res`

        Any error raised while routing or running the plugin is sent back as an error response
        Only a missing result (None) goes out as null. Falsy values like 0, False and "" are sent unchanged
        """
        self._log.debug("request received: {}".format(method))

        if method == POLL:
            # Handshake for the editor
            res.send('ok')

        elif method == SPECS:
            self.handle_request_specs(method, args, res)

        else:
            try:
                res.send(await self.handle_plugin(method, args))

            except Exception as e:
                self._log.exception("Request {} failed".format(method))
                res.send(_describe(e), True)

    async def handle_notification(self, method: str, args: typing.Sequence[typing.Any]) -> Outcome:
        """
        Entrypoint for notifications

        There is nowhere to report a failure to, so errors are logged and dropped
        """
        self._log.debug("notification received: {}".format(method))
        try:
            return Outcome(value=await self.handle_plugin(method, args))

        except Exception as e:
            self._log.exception("Notification {} failed".format(method))
            return Outcome(error=e)

    def handle_disconnect(self) -> None:
        self._log.debug("host.disconnected")

    def start(self, reader, writer, attach=transport.attach) -> interfaces.RpcClient:
        """
        Attach to the rpc streams and start routing its events through the host

        Returns the attached client. Running its read loop is up to the caller
        """
        self._log.debug("host.start")
        client = attach(reader, writer, self._log)
        self.client = client

        client.on('request', self.handler)
        client.on('notification', self.handle_notification)
        client.on('disconnect', self.handle_disconnect)
        return client


def _describe(e: BaseException) -> str:
    return "{}: {}".format(type(e).__name__, e)
