"""The Realtor catalog — a fixed set of estates exposed as tools and a resource."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from realtor.server.registry import Registry, Resource, Tool

ESTATES_URI = "estates://app"


class Estate(BaseModel):
    """One listed property."""

    model_config = {"frozen": True}

    name: str
    price: float
    description: str


ESTATES: tuple[Estate, ...] = (
    Estate(name="Ruul", price=22.0, description="A house with a garden"),
    Estate(name="Cool", price=23.0, description="A house with a swimming pool"),
    Estate(name="Kuul", price=27.0, description="A two storey house"),
)

LIST_ESTATES_DESCRIPTION = (
    "Use this to retrieve a list of all available estates, this only includes "
    "their names. Useful when the user hasn't specified a name or wants to "
    "browse available options."
)

ESTATE_INFO_DESCRIPTION = (
    "Use this to retrieve all available information about a specific estate, "
    "including its name, description, price. Further information about the "
    "estate is in the description. Use this whenever the user asks any question "
    "about a specific estate. The name parameter should match the name of an "
    "estate exactly. You must extract just the estate's name from the user's "
    "input, ignoring surrounding context or extra words. Examples: If the user "
    'asks: "Does the estate Sunset Villa have a garage?" - extract "Sunset '
    'Villa". If the user asks: "Is the estate, kuul having a storey?" - extract '
    '"kuul", not "kuul having a storey"'
)


def _text_result(payload: Any) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(payload)}]}


def find_estate(
    name: str,
    estates: tuple[Estate, ...] = ESTATES,
    *,
    case_sensitive: bool = False,
) -> Estate | None:
    """Return the estate called *name*, or ``None``."""
    if case_sensitive:
        return next((e for e in estates if e.name == name), None)
    folded = name.casefold()
    return next((e for e in estates if e.name.casefold() == folded), None)


def build_registry(
    estates: tuple[Estate, ...] = ESTATES,
    *,
    case_sensitive: bool = False,
) -> Registry:
    """Build the server's registry over *estates*.

    ``case_sensitive`` selects the name-matching rule of ``getEstatInfo``.
    An unknown name is still a successful tool call; its payload carries an
    ``error`` key instead of the estate record.
    """

    async def list_estates(_args: dict[str, Any]) -> dict[str, Any]:
        return _text_result({"names": [e.name for e in estates]})

    async def estate_info(args: dict[str, Any]) -> dict[str, Any]:
        name = args.get("name")
        if not isinstance(name, str):
            raise ValueError("'name' must be a string")
        estate = find_estate(name, estates, case_sensitive=case_sensitive)
        if estate is None:
            return _text_result({"error": "Estate not found"})
        return _text_result(estate.model_dump())

    async def read_estates() -> dict[str, Any]:
        return {
            "contents": [
                {
                    "uri": ESTATES_URI,
                    "mimeType": "application/json",
                    "text": json.dumps([e.model_dump() for e in estates]),
                }
            ]
        }

    return Registry(
        tools=[
            Tool(
                name="getEstates",
                description=LIST_ESTATES_DESCRIPTION,
                handler=list_estates,
            ),
            Tool(
                name="getEstatInfo",
                description=ESTATE_INFO_DESCRIPTION,
                handler=estate_info,
                input_schema={
                    "type": "object",
                    "properties": {"name": {"type": "string"}},
                    "required": ["name"],
                },
            ),
        ],
        resources=[
            Resource(
                uri=ESTATES_URI,
                name="estates",
                reader=read_estates,
                mime_type="application/json",
            ),
        ],
    )
