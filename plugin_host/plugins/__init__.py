
# standard imports

# third-part imports

# local imports

# Reimport stuff from submodules that should be in the 'plugins' scope
from plugin_host.plugins.plugin import Plugin
from plugin_host.plugins.cache import PluginCache
from plugin_host.plugins.registration import autocmd, command, configure, function
