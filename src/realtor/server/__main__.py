"""``python -m realtor.server`` — run the Realtor server on stdio."""

from __future__ import annotations

import asyncio
import os

from realtor.server.dispatcher import Dispatcher
from realtor.server.estates import build_registry
from realtor.server.stdio import run_stdio
from realtor.utils.logs import configure_logging


def main() -> None:
    configure_logging(verbose=os.environ.get("REALTOR_DEBUG") == "1")
    case_sensitive = os.environ.get("REALTOR_CASE_SENSITIVE") == "1"
    dispatcher = Dispatcher(build_registry(case_sensitive=case_sensitive))
    asyncio.run(run_stdio(dispatcher))


if __name__ == "__main__":
    main()
