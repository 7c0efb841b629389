"""Server-side catalog — tools and resources fixed at startup.

A :class:`Registry` is built once and handed to the dispatcher.  It cannot
be mutated afterwards: there is no ``register`` method, and the lookup
tables are read-only views.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from realtor.protocol.models import ResourceDef, ToolDef

ToolHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]
ResourceReader = Callable[[], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class Tool:
    """A named operation the server can run, plus its JSON schema."""

    name: str
    description: str
    handler: ToolHandler
    input_schema: Mapping[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def definition(self) -> ToolDef:
        return ToolDef(
            name=self.name,
            description=self.description,
            input_schema=dict(self.input_schema),
        )


@dataclass(frozen=True)
class Resource:
    """A read-only data source served in full by ``resources/read``."""

    uri: str
    name: str
    reader: ResourceReader
    mime_type: str | None = None

    def definition(self) -> ResourceDef:
        return ResourceDef(uri=self.uri, name=self.name, mime_type=self.mime_type)


class Registry:
    """Immutable lookup of tools by name and resources by uri."""

    def __init__(self, tools: Iterable[Tool] = (), resources: Iterable[Resource] = ()) -> None:
        tool_map: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in tool_map:
                msg = f"Duplicate tool name: {tool.name}"
                raise ValueError(msg)
            tool_map[tool.name] = tool

        resource_map: dict[str, Resource] = {}
        for resource in resources:
            if resource.uri in resource_map:
                msg = f"Duplicate resource uri: {resource.uri}"
                raise ValueError(msg)
            resource_map[resource.uri] = resource

        self._tools: Mapping[str, Tool] = MappingProxyType(tool_map)
        self._resources: Mapping[str, Resource] = MappingProxyType(resource_map)

    @property
    def tools(self) -> Mapping[str, Tool]:
        return self._tools

    @property
    def resources(self) -> Mapping[str, Resource]:
        return self._resources

    def get_tool(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def get_resource(self, uri: str) -> Resource | None:
        return self._resources.get(uri)

    def tool_definitions(self) -> list[ToolDef]:
        return [tool.definition() for tool in self._tools.values()]

    def resource_definitions(self) -> list[ResourceDef]:
        return [resource.definition() for resource in self._resources.values()]
