from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class CatalogItem:
    """
    A Pokémon as described by the external catalog.

    Attributes:
        id: PokéAPI numeric id
        name: Canonical lowercase slug (e.g., "mr-mime")
        image: Front sprite URL, None when the catalog has no sprite
        types: Type tags in catalog slot order (e.g., ("grass", "poison"))
        weight: Weight in hectograms
        height: Height in decimetres
    """

    id: int
    name: str
    image: str | None
    types: tuple[str, ...]
    weight: float
    height: float


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """Name and detail URL from a catalog listing page."""

    name: str
    url: str


@dataclass(frozen=True, slots=True)
class CatalogPage:
    """One page of the catalog listing."""

    count: int
    next: str | None
    previous: str | None
    results: tuple[CatalogEntry, ...] = field(default_factory=tuple)
