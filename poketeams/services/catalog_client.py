"""
PokéAPI catalog client.

Fetches listing pages and per-Pokémon detail over httpx. Every transport
failure, timeout, or unusable payload is raised as CatalogUnavailableError;
a 404 on a detail lookup is raised as NotFoundError.
"""

import asyncio
import logging
from typing import Any, Protocol

import httpx

from poketeams.config import settings
from poketeams.models.catalog import CatalogItem, CatalogPage
from poketeams.models.failure import CatalogUnavailableError, NotFoundError
from poketeams.parsers.pokeapi import parse_pokemon, parse_pokemon_page

logger = logging.getLogger(__name__)

USER_AGENT = "PokeTeams/1.0"


class CatalogSource(Protocol):
    """What the rarity cache and purchase ledger need from a catalog."""

    async def get_item(self, name: str) -> CatalogItem: ...

    async def fetch_items(self, limit: int) -> list[CatalogItem]: ...


class PokeApiClient:
    """Async client for the PokéAPI `pokemon` resource."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_concurrency: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            base_url: API root. Defaults to settings.pokeapi_base_url.
            timeout: Per-request timeout in seconds.
            max_concurrency: Upper bound on in-flight detail requests.
            client: Preconfigured httpx client (tests, connection sharing).
        """
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.pokeapi_base_url,
            timeout=timeout if timeout is not None else settings.catalog_timeout_seconds,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            follow_redirects=True,
        )
        self._max_concurrency = max_concurrency or settings.catalog_max_concurrency

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise NotFoundError(f"The requested resource '{path}' was not found") from e
            logger.error("PokeAPI returned status %d for '%s'", status, path)
            raise CatalogUnavailableError(
                detail=f"PokeAPI status {status} for '{path}'"
            ) from e
        except httpx.TimeoutException as e:
            logger.error("PokeAPI request to '%s' timed out", path)
            raise CatalogUnavailableError(detail=f"Timed out requesting '{path}'") from e
        except httpx.HTTPError as e:
            logger.error("Could not reach PokeAPI at '%s': %s", path, e)
            raise CatalogUnavailableError(detail=f"Network error requesting '{path}'") from e
        except ValueError as e:
            logger.error("PokeAPI returned a non-JSON body for '%s'", path)
            raise CatalogUnavailableError(detail=f"Malformed body for '{path}'") from e

    async def list_page(self, limit: int, offset: int = 0) -> CatalogPage:
        """Fetch one page of the Pokémon listing."""
        payload = await self._get_json("pokemon", params={"limit": limit, "offset": offset})
        try:
            return parse_pokemon_page(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogUnavailableError(detail="Malformed listing payload") from e

    async def get_item(self, name: str) -> CatalogItem:
        """
        Fetch detail for one Pokémon.

        Args:
            name: Normalized Pokémon slug or numeric id

        Raises:
            NotFoundError: If the catalog has no such Pokémon
            CatalogUnavailableError: On any other failure
        """
        try:
            payload = await self._get_json(f"pokemon/{name}")
        except NotFoundError as e:
            raise NotFoundError(f"Pokemon '{name}' not found") from e

        try:
            item = parse_pokemon(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogUnavailableError(detail=f"Malformed detail payload for '{name}'") from e

        logger.info("PokeAPI - Data for 'pokemon/%s' obtained successfully", name)
        return item

    async def fetch_items(self, limit: int) -> list[CatalogItem]:
        """
        Fetch the first `limit` Pokémon with full detail.

        One listing request, then one detail request per entry, run
        concurrently up to the configured bound. Any failure, including a
        listed Pokémon whose detail 404s, fails the whole fetch.
        """
        page = await self.list_page(limit)
        logger.info("PokeAPI - Retrieved %d available pokemons", len(page.results))

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def fetch_one(name: str) -> CatalogItem:
            async with semaphore:
                return await self.get_item(name)

        try:
            items = await asyncio.gather(*(fetch_one(entry.name) for entry in page.results))
        except NotFoundError as e:
            raise CatalogUnavailableError(detail=e.message) from e

        logger.info("PokeAPI - Successfully fetched details for %d pokemons", len(items))
        return list(items)
