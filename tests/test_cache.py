"""Tests for the plugin cache reuse/reload policy."""

from plugin_host.plugins import cache

from tests.conftest import FakeLoader


class TestPluginCache:

    def test_cached_plugin_is_reused(self):
        loader = FakeLoader(should_cache_module=True, always_init=False)
        plugins = cache.PluginCache(loader)

        first = plugins.resolve('a.py', None)
        second = plugins.resolve('a.py', None)

        assert first is second
        assert len(loader.calls) == 1

    def test_first_load_passes_no_cache_flag(self):
        loader = FakeLoader()
        client = object()
        cache.PluginCache(loader).resolve('a.py', client, {'cache': True, 'dev': False})

        assert loader.calls == [('a.py', client, {'cache': None, 'dev': False})]

    def test_always_init_reloads_every_time(self):
        loader = FakeLoader(should_cache_module=True, always_init=True)
        plugins = cache.PluginCache(loader)

        first = plugins.resolve('a.py', None)
        second = plugins.resolve('a.py', None)

        assert first is not second
        assert len(loader.calls) == 2
        # The previous plugin's cache flag is still forwarded to the loader
        assert loader.calls[1][2]['cache'] is True

    def test_uncached_plugin_reloads_every_time(self):
        loader = FakeLoader(should_cache_module=False)
        plugins = cache.PluginCache(loader)

        first = plugins.resolve('a.py', None)
        second = plugins.resolve('a.py', None)

        assert first is not second
        assert loader.calls[1][2]['cache'] is False

    def test_reload_replaces_stale_entry(self):
        loader = FakeLoader(always_init=True)
        plugins = cache.PluginCache(loader)

        plugins.resolve('a.py', None)
        latest = plugins.resolve('a.py', None)

        assert plugins.loaded['a.py'] is latest
        assert list(plugins.loaded) == ['a.py']

    def test_unloadable_plugin_resolves_to_none(self):
        loader = FakeLoader(factory=None)
        plugins = cache.PluginCache(loader)

        assert plugins.resolve('missing.py', None) is None
        assert plugins.resolve('missing.py', None) is None
        assert len(loader.calls) == 2
        assert loader.calls[1][2]['cache'] is None

    def test_files_are_cached_independently(self):
        loader = FakeLoader()
        plugins = cache.PluginCache(loader)

        assert plugins.resolve('a.py', None) is not plugins.resolve('b.py', None)
        assert plugins.resolve('a.py', None) is loader.loaded[0]
