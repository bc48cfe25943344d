import itertools

import pytest

from plugin_host import dispatcher


class FakePlugin:
    """Plugin double exposing the capability surface the host relies on."""

    _ids = itertools.count()

    def __init__(self, specs=None, should_cache_module=True, always_init=False, result=None, error=None):
        self.id = next(self._ids)
        self.specs = specs if specs is not None else []
        self.should_cache_module = should_cache_module
        self.always_init = always_init
        self.result = result
        self.error = error
        self.calls = []

    def handle_request(self, procedure_name, call_type, args):
        self.calls.append((procedure_name, call_type, list(args)))
        if self.error is not None:
            raise self.error
        return self.result


class FakeLoader:
    """Callable loader recording every call; builds plugins from a factory or returns None."""

    def __init__(self, factory=FakePlugin, **plugin_kwargs):
        self.factory = factory
        self.plugin_kwargs = plugin_kwargs
        self.calls = []
        self.loaded = []

    def __call__(self, filename, client, options):
        self.calls.append((filename, client, dict(options)))
        if self.factory is None:
            return None
        plugin = self.factory(**self.plugin_kwargs)
        self.loaded.append(plugin)
        return plugin


class FakeResponse:
    def __init__(self):
        self.sent = []

    def send(self, result, is_error=False):
        self.sent.append((result, is_error))


class FakeClient:
    def __init__(self):
        self.handlers = {}

    def on(self, event, callback):
        self.handlers.setdefault(event, []).append(callback)

    async def request(self, method, *args):
        return None

    def notify(self, method, *args):
        pass


@pytest.fixture
def loader():
    return FakeLoader()


@pytest.fixture
def host(loader):
    return dispatcher.Host(loader, platform='linux')


@pytest.fixture
def response():
    return FakeResponse()
