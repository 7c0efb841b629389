"""Realtor MCP server — registry, dispatcher, and the stdio loop."""

from realtor.server.dispatcher import SERVER_INFO, DispatchError, Dispatcher
from realtor.server.estates import ESTATES, ESTATES_URI, Estate, build_registry, find_estate
from realtor.server.registry import Registry, Resource, Tool
from realtor.server.stdio import run_stdio, serve

__all__ = [
    "ESTATES",
    "ESTATES_URI",
    "SERVER_INFO",
    "DispatchError",
    "Dispatcher",
    "Estate",
    "Registry",
    "Resource",
    "Tool",
    "build_registry",
    "find_estate",
    "run_stdio",
    "serve",
]
