import argparse
import asyncio

from aiohc import settings
from aiohc.dispatcher import Dispatcher

parser = argparse.ArgumentParser(
    prog="aiohc-dispatch",
    description="Send concurrent GET requests to the configured target",
)

parser.add_argument(
    "count",
    type=str,
    nargs="?",
    default=None,
    help="Number of requests to send at once (defaults to 1)",
)


async def _main(count):
    dispatcher = Dispatcher(
        host=settings.TARGET_HOST,
        port=settings.TARGET_PORT,
        path=settings.TARGET_PATH,
    )
    await dispatcher.run(count)


def main(argv=None):
    args = parser.parse_args(argv)
    asyncio.run(_main(args.count))
    return 0
