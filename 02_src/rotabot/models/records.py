"""Stored record models: items, people and events."""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class Role(str, Enum):
    """Participant role used by the rotation."""

    LEADS = "leads"
    FOLLOWS = "follows"


@dataclass
class Item:
    """Something people act on (e.g. a book)."""

    id: str
    name: str
    is_readable: bool = True


@dataclass
class Person:
    """A registered participant."""

    id: str
    name: str
    role: Role

    @property
    def leads(self) -> bool:
        return self.role is Role.LEADS


@dataclass
class Event:
    """One person acting on one item on a given day."""

    date: date
    item_name: str
    actor_name: str


@dataclass
class ItemStat:
    """A row of the ranked report."""

    item_name: str
    count: int


@dataclass
class RareItemStat:
    """How long ago an item was last acted on."""

    item_name: str
    last_date: date | None
    days_since: int  # -1 when never acted on
