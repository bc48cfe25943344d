"""Tests for loading plugin files into plugin instances."""

import importlib.machinery
import sys
import textwrap

import pytest

from plugin_host import dispatcher
from plugin_host.plugins import loader
from plugin_host.plugins import plugin as plugin_types

from tests.conftest import FakeResponse


PLUGIN_SOURCE = '''
from plugin_host import plugins


@plugins.function('Add', sync=True)
def add(plugin, a, b):
    return a + b


@plugins.command('Greet', nargs='*')
async def greet(plugin, *names):
    return 'hello ' + ' '.join(names)


@plugins.autocmd('BufEnter', pattern='*.py')
def enter(plugin, *args):
    return 'entered'
'''


def write_plugin(directory, source, name='plugin.py'):
    path = directory / name
    path.write_text(textwrap.dedent(source))
    return str(path)


@pytest.fixture
def plugin_file(tmp_path):
    path = write_plugin(tmp_path, PLUGIN_SOURCE)
    yield path
    sys.modules.pop(loader.module_name(path), None)


class TestLoad:

    def test_builds_plugin_from_registrations(self, plugin_file):
        loaded = loader.load(plugin_file, None)

        assert isinstance(loaded, plugin_types.Plugin)
        assert loaded.filename == plugin_file
        assert loaded.specs == [
            {'type': 'function', 'name': 'Add', 'sync': True, 'opts': {}},
            {'type': 'command', 'name': 'Greet', 'sync': False, 'opts': {'nargs': '*'}},
            {'type': 'autocmd', 'name': 'BufEnter', 'sync': False, 'opts': {'pattern': '*.py'}},
        ]
        assert loaded.should_cache_module
        assert not loaded.always_init

    def test_client_is_handed_to_plugin(self, plugin_file):
        client = object()
        assert loader.load(plugin_file, client).client is client

    def test_missing_file_returns_none(self, tmp_path):
        assert loader.load(str(tmp_path / 'nope.py'), None) is None

    def test_import_errors_return_none(self, tmp_path):
        path = write_plugin(tmp_path, 'def broken(:\n')

        assert loader.load(path, None) is None
        assert loader.module_name(path) not in sys.modules

    def test_spec_without_loader_is_an_import_error(self, plugin_file, monkeypatch):
        monkeypatch.setattr(loader.importlib.util, 'spec_from_file_location',
                            lambda name, path, **kwargs: importlib.machinery.ModuleSpec(name, None))

        with pytest.raises(ImportError, match='No module loader'):
            loader._import(loader.module_name(plugin_file), plugin_file)
        assert loader.load(plugin_file, None) is None
        assert loader.module_name(plugin_file) not in sys.modules

    def test_duplicate_handlers_fail_the_load(self, tmp_path):
        path = write_plugin(tmp_path, '''
            from plugin_host import plugins

            @plugins.function('Go')
            def one(plugin):
                pass

            @plugins.function('Go')
            def two(plugin):
                pass
        ''')

        assert loader.load(path, None) is None

    def test_configure_sets_cache_policy(self, tmp_path):
        path = write_plugin(tmp_path, '''
            from plugin_host import plugins

            plugins.configure(dev=True, always_init=True)
        ''')
        loaded = loader.load(path, None)

        assert not loaded.should_cache_module
        assert loaded.always_init
        sys.modules.pop(loader.module_name(path), None)

    def test_options_provide_policy_defaults(self, plugin_file):
        loaded = loader.load(plugin_file, None, {'dev': True})
        assert not loaded.should_cache_module

    def test_package_directories_load_through_init(self, tmp_path):
        package = tmp_path / 'pkg'
        package.mkdir()
        write_plugin(package, PLUGIN_SOURCE, name='__init__.py')

        loaded = loader.load(str(package), None)

        assert loaded is not None
        assert len(loaded.specs) == 3
        sys.modules.pop(loader.module_name(str(package / '__init__.py')), None)


class TestModuleCaching:

    def test_cache_flag_reuses_imported_module(self, plugin_file):
        first = loader.load(plugin_file, None)
        module = sys.modules[loader.module_name(plugin_file)]
        second = loader.load(plugin_file, None, {'cache': True})

        assert sys.modules[loader.module_name(plugin_file)] is module
        assert first is not second
        assert second.specs == first.specs

    @pytest.mark.parametrize('cache_flag', [None, False])
    def test_without_cache_flag_module_is_reimported(self, plugin_file, cache_flag):
        loader.load(plugin_file, None)
        module = sys.modules[loader.module_name(plugin_file)]

        loader.load(plugin_file, None, {'cache': cache_flag})

        assert sys.modules[loader.module_name(plugin_file)] is not module


class TestHostWithLoader:

    @pytest.mark.asyncio
    async def test_request_runs_plugin_handler(self, plugin_file):
        host = dispatcher.Host(loader.make_loader(), platform='linux')
        response = FakeResponse()

        await host.handler('{}:function:Add'.format(plugin_file), [2, 3], response)
        await host.handler('{}:command:Greet'.format(plugin_file), ['a', 'b'], response)
        await host.handler('{}:autocmd:BufEnter:*.py'.format(plugin_file), [], response)

        assert response.sent == [(5, False), ('hello a b', False), ('entered', False)]

    @pytest.mark.asyncio
    async def test_always_init_plugins_get_new_instances(self, tmp_path):
        path = write_plugin(tmp_path, '''
            from plugin_host import plugins

            plugins.configure(always_init=True)

            @plugins.function('Me', sync=True)
            def me(plugin):
                return id(plugin)
        ''')
        host = dispatcher.Host(loader.make_loader())

        first = await host.handle_plugin('{}:function:Me'.format(path), [])
        second = await host.handle_plugin('{}:function:Me'.format(path), [])

        assert first != second
        sys.modules.pop(loader.module_name(path), None)

    @pytest.mark.asyncio
    async def test_unknown_handler_is_reported(self, plugin_file):
        host = dispatcher.Host(loader.make_loader())
        response = FakeResponse()

        await host.handler('{}:function:Nope'.format(plugin_file), [], response)

        message, is_error = response.sent[0]
        assert is_error
        assert 'Nope' in message
