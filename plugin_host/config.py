
# standard imports
import logging
import os
import typing

# third-part imports
import anyconfig
import pydantic

# local imports
from plugin_host import errors


# Environment variables that override the matching config file values
ENV_OVERRIDES = {
    'PLUGIN_HOST_LOG_DIR': 'log_dir',
    'PLUGIN_HOST_LOG_FILE': 'log_file',
    'PLUGIN_HOST_LOG_LEVEL': 'log_level',
}


class HostConfig(pydantic.BaseModel):
    """
    Settings for a plugin host process
    """

    log_dir: str = '.'
    log_file: str = 'plugin_host.log'
    log_level: str = 'INFO'

    # Merged into every plugin load (eg. `dev: true` to always re-import plugin files)
    load_options: typing.Dict[str, typing.Any] = pydantic.Field(default_factory=dict)

    # Overrides `sys.platform` when parsing plugin paths
    platform: typing.Optional[str] = None

    @pydantic.field_validator('log_level')
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError("Unknown log level `{}`".format(value))
        return level


def load(path: typing.Optional[str] = None,
         env: typing.Optional[typing.Mapping[str, str]] = None,
         **overrides: typing.Any) -> HostConfig:
    """
    Build the host configuration from an optional config file, the environment, and explicit overrides

    Later sources win: file < environment < keyword overrides (None values are skipped)
    """
    conf: typing.Dict[str, typing.Any] = {}
    if path is not None:
        try:
            conf.update(anyconfig.load(path) or {})
        except Exception as e:
            raise errors.ConfigError("Failed to read config file {}: {}".format(path, e)) from e

    env = os.environ if env is None else env
    for var, key in ENV_OVERRIDES.items():
        if env.get(var):
            conf[key] = env[var]

    conf.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return HostConfig.model_validate(conf)
    except pydantic.ValidationError as e:
        raise errors.ConfigError("Invalid host configuration: {}".format(e)) from e
