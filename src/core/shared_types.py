"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    WAITING_FOR_PLAYERS = "waiting for players"
    IN_PROGRESS = "in progress"
    FINISHED = "finished"


# --- NOTE: The domain layer (src/tactics) uses these enums directly. The values double as the wire format for the API / DB layers.


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class PieceType(StrEnum):
    MONARCH = "monarch"
    DUCHESS = "duchess"
    RAM_TOWER = "ramTower"
    CHARIOT = "chariot"
    PALADIN = "paladin"
    NECROMANCER = "necromancer"
    WARLOCK = "warlock"
    BOMBER = "bomber"
    HOPLITE = "hoplite"


class ObstacleType(StrEnum):
    CAVE = "cave"
    TREE = "tree"
    ROCK = "rock"
    RIVER = "river"
    LAKE = "lake"
    CANYON = "canyon"
    MYSTERY_BOX = "mysteryBox"


class BoardSizeKey(StrEnum):
    SMALL = "12x12"
    MEDIUM = "12x16"
    LARGE = "12x20"


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class AttackMode(StrEnum):
    """Only relevant for pieces that can choose how to resolve an attack (see PIECE_RULES)"""

    RANGED = "ranged"
    CAPTURE = "capture"
