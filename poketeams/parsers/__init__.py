from poketeams.parsers.pokeapi import parse_pokemon, parse_pokemon_page

__all__ = [
    "parse_pokemon",
    "parse_pokemon_page",
]
