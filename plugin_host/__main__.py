
# standard imports
import argparse
import asyncio
import typing

# third-part imports

# local imports
from plugin_host import config
from plugin_host import dispatcher
from plugin_host import logger
from plugin_host import transport
from plugin_host.plugins import loader


async def run(conf: config.HostConfig, log: logger.Logger) -> None:
    """
    Serve plugin calls over stdio until the editor disconnects
    """
    host = dispatcher.Host(loader.make_loader(log), log=log, platform=conf.platform, load_options=conf.load_options)

    reader, writer = await transport.open_stdio()
    session = host.start(reader, writer)

    log.info("Plugin host started")
    await session.run()
    log.info("Plugin host stopped")


def main(argv: typing.Optional[typing.List[str]] = None) -> None:
    p = argparse.ArgumentParser(description="Host remote plugins for the editor over stdio")
    p.add_argument('--config', help="Yaml config file for the host")
    p.add_argument('--log-dir', help="Base directory for local log storage")
    p.add_argument('--log-level', help="Level for logging messages")
    args = p.parse_args(argv)

    conf = config.load(args.config, log_dir=args.log_dir, log_level=args.log_level)
    log = logger.create(conf.log_file, name='plugin_host', log_dir=conf.log_dir, level=conf.log_level)

    try:
        asyncio.run(run(conf, log))
    except KeyboardInterrupt:
        log.info("Interrupted")


if __name__ == "__main__":
    main()
