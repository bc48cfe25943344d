
# standard imports
import logging
import os
import typing

# third-part imports

# local imports


DEFAULT_FORMAT = "[%(asctime)s][%(levelname)s][%(filename)s:%(lineno)d] %(message)s"
NULL_LOGGER = 'plugin_host.null'

Logger = logging.Logger


def _file_handler(log: Logger, path: str) -> typing.Optional[logging.FileHandler]:
    for hdlr in log.handlers:
        if isinstance(hdlr, logging.FileHandler) and hdlr.baseFilename == path:
            return hdlr
    return None


def create(file: str,
           name: typing.Optional[str] = None,
           log_dir: typing.Optional[str] = None,
           fmt: typing.Optional[str] = None,
           level: typing.Optional[str] = None) -> Logger:
    """
    Get the named logger, writing to `<log_dir>/<file>`

    Calling this again for the same name and file reuses the existing handler (only the format and level
    Get updated), so a host that is restarted within one process doesn't write every line twice
    NOTE: The host never logs to stdout, as that is where the rpc stream gets written
    """
    log_dir = log_dir or '.'
    os.makedirs(log_dir, exist_ok=True)
    path = os.path.abspath(os.path.join(log_dir, file))

    log = logging.getLogger(name or 'plugin_host')
    hdlr = _file_handler(log, path)
    if hdlr is None:
        hdlr = logging.FileHandler(path)
        log.addHandler(hdlr)

    hdlr.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    log.setLevel((level or 'DEBUG').upper())

    return log


def dummy_logger() -> Logger:
    """
    Logger for components created without one. Everything sent to it is dropped
    """
    log = logging.getLogger(NULL_LOGGER)
    if not log.handlers:
        log.addHandler(logging.NullHandler())
        log.propagate = False
    return log
