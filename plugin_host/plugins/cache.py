
# standard imports
import types
import typing

# third-part imports

# local imports
from plugin_host import interfaces
from plugin_host import logger


class PluginCache(object):
    """
    Owns the live plugin instance for every plugin file the host has resolved

    There is at most one current plugin per filename. Reloading overwrites the entry
    So the stale instance is dropped. Entries are never evicted
    NOTE: There's no lock around the mapping. Concurrent reloads of the same file race, the last write wins
    """

    def __init__(self, loader: interfaces.PluginLoader, log: typing.Optional[logger.Logger] = None) -> None:
        self._loader = loader
        self._log = log or logger.dummy_logger()
        self._loaded: typing.Dict[str, typing.Optional[interfaces.PluginHandle]] = {}

    @property
    def loaded(self) -> typing.Mapping[str, typing.Optional[interfaces.PluginHandle]]:
        return types.MappingProxyType(self._loaded)

    def resolve(self,
                filename: str,
                client: typing.Optional[interfaces.RpcClient],
                options: typing.Optional[interfaces.LoadOptions] = None) -> typing.Optional[interfaces.PluginHandle]:
        """
        Return the plugin for `filename`, loading it if the cached instance can't be reused

        A cached plugin is only reused if it allows module caching and doesn't ask to be re-initialized
        Otherwise the loader is called with the cached plugin's cache flag (None if nothing was cached)
        Returns None if the loader couldn't produce a plugin
        """
        plugin = self._loaded.get(filename)
        if plugin is not None and plugin.should_cache_module and not plugin.always_init:
            self._log.debug("Using cached plugin {}".format(filename))
            return plugin

        load_options = dict(options or {})
        load_options['cache'] = plugin.should_cache_module if plugin is not None else None

        self._log.debug("Loading plugin {} (cache={})".format(filename, load_options['cache']))
        plugin = self._loader(filename, client, load_options)
        self._loaded[filename] = plugin

        return plugin
