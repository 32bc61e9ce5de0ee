"""
PokéAPI payload parsing.

Converts raw JSON from https://pokeapi.co/api/v2/pokemon into catalog
dataclasses. Only the fields the service needs are read.
"""

from typing import Any

from poketeams.models.catalog import CatalogEntry, CatalogItem, CatalogPage


def parse_pokemon(payload: dict[str, Any]) -> CatalogItem:
    """
    Build a CatalogItem from a `pokemon/{name}` detail payload.

    Args:
        payload: Decoded JSON body

    Returns:
        CatalogItem with types in slot order

    Raises:
        KeyError: If id or name is missing
    """
    slots = sorted(payload.get("types") or [], key=lambda t: t.get("slot", 0))
    types = tuple(slot["type"]["name"] for slot in slots if slot.get("type"))
    sprites = payload.get("sprites") or {}

    return CatalogItem(
        id=int(payload["id"]),
        name=str(payload["name"]),
        image=sprites.get("front_default"),
        types=types,
        weight=payload.get("weight") or 0,
        height=payload.get("height") or 0,
    )


def parse_pokemon_page(payload: dict[str, Any]) -> CatalogPage:
    """Build a CatalogPage from a `pokemon?limit=&offset=` listing payload."""
    results = tuple(
        CatalogEntry(name=entry["name"], url=entry.get("url", ""))
        for entry in payload.get("results") or []
    )
    return CatalogPage(
        count=int(payload.get("count", len(results))),
        next=payload.get("next"),
        previous=payload.get("previous"),
        results=results,
    )
