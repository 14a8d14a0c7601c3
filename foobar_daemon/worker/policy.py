import enum
import struct

import xxhash

GROWTH_LIMIT = 10
EVICTION_THRESHOLD = 20
INSERT_PROBABILITY = 0.5


class Action(enum.Enum):
    INSERT = "insert"
    EVICT = "evict"


def decide(item_count: int, random_value: float) -> Action:
    """Grow while small, grow with probability 0.5 in the middle band, shed above it."""
    if item_count < GROWTH_LIMIT:
        return Action.INSERT
    if item_count < EVICTION_THRESHOLD and random_value < INSERT_PROBABILITY:
        return Action.INSERT
    return Action.EVICT


def item_text(random_value: float) -> str:
    """Hex xxh64 digest of the IEEE-754 bit pattern of random_value."""
    return xxhash.xxh64_hexdigest(struct.pack("<d", random_value))
