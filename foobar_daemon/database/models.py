from dataclasses import dataclass
from datetime import datetime


@dataclass
class ItemRecord:
    """Represents a row from the foobar.items table."""

    id: int
    text: str
    time: datetime | None = None


@dataclass
class TableState:
    """Row count and a random value drawn by the store in the same query."""

    item_count: int
    random_value: float
