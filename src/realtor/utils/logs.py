"""Logging setup shared by the server and the client commands."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False, default_level: int = logging.INFO) -> None:
    """Send log records to stderr.

    Stdout stays free: it is the protocol channel when serving and the
    rich console when running client commands.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else default_level,
        stream=sys.stderr,
        format=_FORMAT,
    )
