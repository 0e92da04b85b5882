"""
CardStore: authoritative in-memory menu → cards map.

Card lifecycle:
  Active(menu) → Active(Deleted) → removed

Every effective mutation emits an event and then hands a fresh snapshot
to the flush hook. A failed flush is reported, never rolled back.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union

from .codec import Snapshot, empty_snapshot, new_card_id
from .errors import PersistenceError, ValidationError
from .events import CARD_CREATED, CARD_DELETED, CARD_PURGED, SAVE_FAILED, EventBus
from .schema import Card, MenuKind, utc_now

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200


class CardStore:
    """In-memory card state with soft/permanent delete."""

    def __init__(
        self,
        snapshot: Optional[Snapshot] = None,
        events: Optional[EventBus] = None,
        on_change: Optional[Callable[[Snapshot], None]] = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_card_id,
        max_name_length: int = MAX_NAME_LENGTH,
    ):
        self.events = events or EventBus()
        self.on_change = on_change
        self.clock = clock
        self.id_factory = id_factory
        self.max_name_length = max_name_length
        self._cards: Dict[MenuKind, List[Card]] = empty_snapshot()
        if snapshot:
            self._seed(snapshot)

    def _seed(self, snapshot: Snapshot) -> None:
        """Load a decoded snapshot, enforcing menu/key agreement and unique ids."""
        seen = set()
        for menu, cards in snapshot.items():
            for card in cards:
                if card.card_id in seen:
                    logger.warning(f"Dropping duplicate card {card.card_id} in {menu.value!r}")
                    continue
                seen.add(card.card_id)
                if card.menu is not menu:
                    card = card.moved_to(menu)
                self._cards[menu].append(card)

    # -------------------- mutations --------------------

    def create_card(self, menu: Union[MenuKind, str], name: str) -> Card:
        """Create a card in `menu`. Raises ValidationError; store unchanged on error."""
        if not isinstance(menu, MenuKind):
            try:
                menu = MenuKind.from_str(menu)
            except ValueError as e:
                raise ValidationError(str(e)) from e
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Card name must not be empty")
        name = name.strip()
        if len(name) > self.max_name_length:
            raise ValidationError(
                f"Card name is {len(name)} characters; the limit is {self.max_name_length}"
            )

        card = Card(card_id=self.id_factory(), name=name, menu=menu, created_at=self.clock())
        self._cards[menu].append(card)
        logger.debug(f"Created card {card.card_id} in {menu.value!r}")
        self.events.emit(CARD_CREATED, card=card)
        self.flush()
        return card

    def soft_delete(self, card_id: str) -> Optional[Card]:
        """Move a card to Deleted. Unknown or already deleted ids are a no-op."""
        for menu in MenuKind.active():
            cards = self._cards[menu]
            for idx, card in enumerate(cards):
                if card.card_id == card_id:
                    del cards[idx]
                    deleted = card.moved_to(MenuKind.DELETED)
                    self._cards[MenuKind.DELETED].append(deleted)
                    logger.debug(f"Moved card {card_id} from {menu.value!r} to Deleted")
                    self.events.emit(CARD_DELETED, card=deleted)
                    self.flush()
                    return deleted
        return None

    def permanently_delete(self, card_id: str) -> Optional[Card]:
        """Remove a card from Deleted for good. No-op if it is not there."""
        cards = self._cards[MenuKind.DELETED]
        for idx, card in enumerate(cards):
            if card.card_id == card_id:
                del cards[idx]
                logger.debug(f"Permanently deleted card {card_id}")
                self.events.emit(CARD_PURGED, card=card)
                self.flush()
                return card
        return None

    def flush(self) -> None:
        """Hand the current snapshot to the flush hook; failures become save_failed."""
        if self.on_change is None:
            return
        try:
            self.on_change(self.snapshot())
        except PersistenceError as e:
            logger.error(f"Save failed, keeping in-memory state: {e}")
            self.events.emit(SAVE_FAILED, error=e)

    # -------------------- queries --------------------

    def cards_for_menu(self, menu: MenuKind) -> List[Card]:
        """Cards in `menu`, newest first."""
        return sorted(self._cards[menu], key=lambda c: c.created_at, reverse=True)

    def count_for_menu(self, menu: MenuKind) -> int:
        return len(self._cards[menu])

    def counts(self) -> Dict[MenuKind, int]:
        return {menu: len(cards) for menu, cards in self._cards.items()}

    def get(self, card_id: str) -> Optional[Card]:
        for cards in self._cards.values():
            for card in cards:
                if card.card_id == card_id:
                    return card
        return None

    def snapshot(self) -> Snapshot:
        """Copy of the full state. Cards are immutable, so lists are copied shallowly."""
        return {menu: list(cards) for menu, cards in self._cards.items()}

    def __len__(self) -> int:
        return sum(len(cards) for cards in self._cards.values())

    def __str__(self) -> str:
        return ", ".join(f"{menu.value}: {len(cards)}" for menu, cards in self._cards.items())
