"""
SmartList card schema.

Menus:
  To Do, Shopping List, Reminders, Notes → Deleted

A card lives in exactly one menu. Soft delete moves it to Deleted;
permanent delete removes it from the store entirely.
"""
from enum import Enum
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

# Reference date of the original app's numeric timestamps
APPLE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


class MenuKind(Enum):
    """The fixed set of menus. Values are the wire/display strings."""
    TODO = "To Do"
    SHOPPING = "Shopping List"
    REMINDERS = "Reminders"
    NOTES = "Notes"
    DELETED = "Deleted"

    @classmethod
    def from_str(cls, value: str) -> "MenuKind":
        """Accept the wire value or the member name, ignoring case and spacing."""
        if not isinstance(value, str):
            raise ValueError(f"Unknown menu: {value!r}")
        key = value.lower().replace(" ", "").replace("_", "").replace("-", "")
        for menu in cls:
            if key in (menu.name.lower(), menu.value.lower().replace(" ", "")):
                return menu
        raise ValueError(f"Unknown menu: {value!r}")

    @classmethod
    def active(cls) -> tuple:
        """Menus a card can be created in and soft-deleted from."""
        return tuple(m for m in cls if m is not cls.DELETED)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a stored `created` value.

    ISO-8601 strings are the native format. Numbers are seconds since
    2001-01-01 UTC. Naive results are taken as UTC.
    """
    if isinstance(value, bool):
        raise TypeError("created must be a string or number, not bool")
    if isinstance(value, (int, float)):
        return APPLE_EPOCH + timedelta(seconds=value)
    if not isinstance(value, str):
        raise TypeError(f"created must be a string or number, got {type(value).__name__}")
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class Card:
    """One user item in a menu."""

    card_id: str            # UUID string, never reassigned
    name: str
    menu: MenuKind
    created_at: datetime    # fixed at creation, drives newest-first ordering

    def moved_to(self, menu: MenuKind) -> "Card":
        """Copy of this card under another menu; id, name and timestamp kept."""
        return replace(self, menu=menu)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored card record."""
        return {
            "id": self.card_id,
            "name": self.name,
            "menu": self.menu.value,
            "created": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        """
        Deserialize a stored card record.

        Strict on purpose: a missing or mistyped field raises, which is
        how the codec tells the current schema from the legacy one.
        """
        if not isinstance(data, dict):
            raise TypeError(f"card record must be an object, got {type(data).__name__}")
        card_id = data["id"]
        name = data["name"]
        if not isinstance(card_id, str) or not card_id:
            raise ValueError("card id must be a non-empty string")
        if not isinstance(name, str):
            raise TypeError("card name must be a string")
        return cls(
            card_id=card_id,
            name=name,
            menu=MenuKind(data["menu"]),
            created_at=parse_timestamp(data["created"]),
        )
