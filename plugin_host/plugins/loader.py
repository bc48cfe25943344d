
# standard imports
import importlib.abc
import importlib.util
import os.path
import sys
import types
import typing
import uuid

# third-part imports

# local imports
from plugin_host import interfaces
from plugin_host import logger
from plugin_host.plugins import plugin, registration


# Attribute set on executed plugin modules to hold what they registered
REGISTRATIONS_ATTR = '__plugin_registrations__'


def module_name(path: str) -> str:
    """
    Stable `sys.modules` key for the plugin at `path`
    """
    return "plugin_host_plugin_{}".format(uuid.uuid5(uuid.NAMESPACE_URL, path).hex)


def locate(filename: str) -> typing.Optional[str]:
    """
    Find the python source for a plugin file. Packages are loaded through their `__init__.py`
    """
    path = os.path.abspath(os.path.expanduser(filename))
    if os.path.isdir(path):
        path = os.path.join(path, '__init__.py')

    if not os.path.isfile(path):
        return None
    return path


def _import(name: str, path: str) -> types.ModuleType:
    """
    Execute the plugin module within a fresh registration scope and record everything it registered
    """
    search_locations = None
    if os.path.basename(path) == '__init__.py':
        search_locations = [os.path.dirname(path)]

    spec = importlib.util.spec_from_file_location(name, path, submodule_search_locations=search_locations)
    if spec is None:
        raise ImportError("Could not create an import spec for {}".format(path))
    if not isinstance(spec.loader, importlib.abc.Loader):
        raise ImportError("No module loader available for {}".format(path))

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        with registration.collect() as registered:
            spec.loader.exec_module(module)

    except BaseException:
        sys.modules.pop(name, None)
        raise

    setattr(module, REGISTRATIONS_ATTR, registered)
    return module


def load(filename: str,
         client: typing.Optional[interfaces.RpcClient],
         options: typing.Optional[interfaces.LoadOptions] = None,
         log: typing.Optional[logger.Logger] = None) -> typing.Optional[plugin.Plugin]:
    """
    Load the plugin file and construct a new plugin instance from it

    Unless `options['cache']` is truthy, the module is dropped from `sys.modules` and re-executed
    Otherwise a previously imported module is reused, but a new plugin instance is still created
    `options['dev']` and `options['always_init']` provide defaults for the plugin's own `configure` call

    NOTE: Failures are logged and reported by returning None. The host turns that into `PluginNotFound`
    """
    log = log or logger.dummy_logger()
    options = options or {}

    path = locate(filename)
    if path is None:
        log.error("Could not find plugin {}".format(filename))
        return None

    name = module_name(path)
    if not options.get('cache'):
        log.debug("Clearing module cache for {}".format(filename))
        sys.modules.pop(name, None)

    try:
        module = sys.modules.get(name)
        if module is None or not hasattr(module, REGISTRATIONS_ATTR):
            log.info("Loading plugin module {}".format(filename))
            module = _import(name, path)

    except Exception as e:
        log.exception("Error loading plugin {}: {}".format(filename, e))
        return None

    registered: registration.Registrations = getattr(module, REGISTRATIONS_ATTR)
    plugin_options = {
        'dev': bool(options.get('dev', False)),
        'always_init': bool(options.get('always_init', False)),
    }
    plugin_options.update(registered.options)

    loaded = plugin.Plugin(filename, client, log, **plugin_options)
    for handler in registered.handlers:
        loaded.register(handler)

    log.info("Loaded plugin {} ({} handlers)".format(filename, len(registered.handlers)))
    return loaded


def make_loader(log: typing.Optional[logger.Logger] = None,
                defaults: typing.Optional[interfaces.LoadOptions] = None) -> interfaces.PluginLoader:
    """
    Bind a logger and default load options into a loader callable usable by the plugin cache
    """
    def _load(filename: str,
              client: typing.Optional[interfaces.RpcClient],
              options: interfaces.LoadOptions) -> typing.Optional[plugin.Plugin]:
        return load(filename, client, {**(defaults or {}), **options}, log=log)

    return _load
