from enum import Enum


class PokemonType(str, Enum):
    """Elemental types a team can be built around."""

    NORMAL = "normal"
    FIRE = "fire"
    WATER = "water"
    GRASS = "grass"
    ELECTRIC = "electric"
    ICE = "ice"
    FIGHTING = "fighting"
    POISON = "poison"
    GROUND = "ground"
    FLYING = "flying"
    PSYCHIC = "psychic"
    BUG = "bug"
    ROCK = "rock"
    GHOST = "ghost"
    DRAGON = "dragon"
    DARK = "dark"
    STEEL = "steel"
    FAIRY = "fairy"


# Members tagged with this type fit any team, and a team of this type accepts anything
UNIVERSAL_COMPATIBLE_TYPE = PokemonType.NORMAL


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
