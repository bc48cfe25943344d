# standard imports
import contextlib
import typing

# third-part imports

# local imports


FUNCTION = 'function'
COMMAND = 'command'
AUTOCMD = 'autocmd'
CALL_TYPES = (FUNCTION, COMMAND, AUTOCMD)


class Registration(typing.NamedTuple):
    """
    A single handler exported by a plugin module

    `key` is what the editor sends as the procedure name, `name` is what gets reported in the specs
    """
    call_type: str
    name: str
    key: str
    callback: typing.Callable[..., typing.Any]
    sync: bool
    opts: typing.Dict[str, typing.Any]


class Registrations(object):
    """
    Collects the handlers and plugin options declared while a plugin module is being executed
    """

    def __init__(self) -> None:
        self.handlers: typing.List[Registration] = []
        self.options: typing.Dict[str, bool] = {}

    def add(self, registration: Registration) -> None:
        for existing in self.handlers:
            if existing.call_type == registration.call_type and existing.key == registration.key:
                raise ValueError("Name clash on {} `{}`: Two handlers found with the same name".format(
                    registration.call_type, registration.key))

        self.handlers.append(registration)


# Decorators write into whatever registration scope is active
# The loader swaps in a fresh scope for every plugin module it executes
_ACTIVE_REGISTRATIONS = Registrations()


@contextlib.contextmanager
def collect() -> typing.Iterator[Registrations]:
    """
    Open a fresh registration scope, restoring the previous one on exit
    """
    global _ACTIVE_REGISTRATIONS

    previous = _ACTIVE_REGISTRATIONS
    _ACTIVE_REGISTRATIONS = Registrations()
    try:
        yield _ACTIVE_REGISTRATIONS
    finally:
        _ACTIVE_REGISTRATIONS = previous


def _register(call_type: str, name: str, key: str, sync: bool, opts: typing.Dict[str, typing.Any]):
    def _decorator(func):
        _ACTIVE_REGISTRATIONS.add(Registration(call_type, name, key, func, sync, opts))
        return func
    return _decorator


##
## Handler Registration
##

def function(name: str, sync: bool = False, **opts):
    """
    Export the decorated callable as an editor function

    Handlers are called as `func(plugin, *args)` and may be coroutines
    """
    return _register(FUNCTION, name, name, sync, opts)


def command(name: str, sync: bool = False, **opts):
    """
    Export the decorated callable as an editor command
    """
    return _register(COMMAND, name, name, sync, opts)


def autocmd(event: str, pattern: str = '*', sync: bool = False, **opts):
    """
    Export the decorated callable as an autocmd handler for `event` on files matching `pattern`

    The editor sends these as `<file>:autocmd:<event>:<pattern>`, which the host rejoins into `<event> <pattern>`
    """
    opts['pattern'] = pattern
    return _register(AUTOCMD, event, "{} {}".format(event, pattern), sync, opts)


def configure(dev: typing.Optional[bool] = None, always_init: typing.Optional[bool] = None) -> None:
    """
    Set the cache policy of the plugin currently being loaded

    `dev` plugins are re-imported on every call, `always_init` plugins get a new instance on every call
    """
    if dev is not None:
        _ACTIVE_REGISTRATIONS.options['dev'] = dev
    if always_init is not None:
        _ACTIVE_REGISTRATIONS.options['always_init'] = always_init
