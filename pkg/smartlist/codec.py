"""
Snapshot codec: CardStore state <-> one JSON blob in a key-value store.

Current schema:
    {"cardsByMenu": {"To Do": [{"id", "name", "menu", "created"}, ...], ...}}

Legacy schema (read-only, migrated on load):
    {"cardsByMenu": {"To Do": ["Buy milk", ...], ...}}

There is no version tag. The schema is detected by trying the current
decode first and falling back to the legacy decode, so a blob that is
structurally valid under both shapes is read as current. A snapshot made
only of empty lists is such a blob; both readings give the same result.
"""
import json
import logging
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from .errors import DecodeError, EncodeError, WriteError
from .schema import Card, MenuKind, utc_now

logger = logging.getLogger(__name__)

STORAGE_KEY = "cardsByMenuStorageKeyV1"

Snapshot = Dict[MenuKind, List[Card]]


def empty_snapshot() -> Snapshot:
    """Every menu present, every list empty."""
    return {menu: [] for menu in MenuKind}


def new_card_id() -> str:
    return str(uuid.uuid4())


def _cards_by_menu(blob: bytes) -> dict:
    """Parse the outer envelope shared by both schemas."""
    try:
        data = json.loads(blob)
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("cardsByMenu"), dict):
        raise DecodeError("Snapshot has no cardsByMenu object")
    return data["cardsByMenu"]


class PersistenceCodec:
    """Reads and writes the full snapshot under a single storage key."""

    def __init__(
        self,
        kv,
        key: str = STORAGE_KEY,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_card_id,
    ):
        self.kv = kv
        self.key = key
        self.clock = clock
        self.id_factory = id_factory
        self.migrated = False  # last decode took the legacy path

    # ── encode / save ─────────────────────────────────────────────────────

    def encode(self, state: Snapshot) -> bytes:
        """Serialize the full snapshot. Raises EncodeError."""
        try:
            payload = {
                "cardsByMenu": {
                    menu.value: [card.to_dict() for card in state.get(menu, [])]
                    for menu in MenuKind
                }
            }
            return json.dumps(payload, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError, AttributeError) as e:
            # UnicodeEncodeError (lone surrogates in a name) is a ValueError
            raise EncodeError(f"Failed to encode snapshot: {e}") from e

    def write(self, blob: bytes) -> None:
        """Store an encoded blob, overwriting any previous value."""
        try:
            self.kv.set(self.key, blob)
        except Exception as e:
            raise WriteError(f"Failed to write snapshot under {self.key!r}: {e}") from e

    def save(self, state: Snapshot) -> None:
        """Encode and write. Raises EncodeError or WriteError."""
        self.write(self.encode(state))

    # ── decode / load ─────────────────────────────────────────────────────

    def decode(self, blob: bytes) -> Snapshot:
        """
        Decode as current schema, else as legacy schema. Raises DecodeError.

        Sets `migrated` when the legacy path was taken; the caller must
        write the result back so the fresh ids survive a restart.
        """
        self.migrated = False
        raw = _cards_by_menu(blob)
        try:
            return self._decode_current(raw)
        except (KeyError, TypeError, ValueError, OverflowError) as current_err:
            try:
                snapshot = self._decode_legacy(raw)
            except (TypeError, ValueError) as legacy_err:
                raise DecodeError(
                    f"Snapshot matches neither schema (current: {current_err!r}; "
                    f"legacy: {legacy_err!r})"
                ) from legacy_err
        self.migrated = True
        migrated = sum(len(cards) for cards in snapshot.values())
        logger.info(f"Migrated {migrated} cards from legacy snapshot format")
        return snapshot

    def _decode_current(self, raw: dict) -> Snapshot:
        snapshot = empty_snapshot()
        for key, records in raw.items():
            try:
                menu = MenuKind(key)
            except ValueError:
                logger.warning(f"Dropping unknown menu {key!r} from snapshot")
                continue
            if not isinstance(records, list):
                raise TypeError(f"cards for {key!r} must be a list")
            for record in records:
                card = Card.from_dict(record)
                if not card.name.strip():
                    logger.warning(f"Skipping card {card.card_id} with blank name")
                    continue
                if card.menu is not menu:
                    logger.warning(f"Card {card.card_id} stored under {key!r} claims {card.menu.value!r}")
                    card = card.moved_to(menu)
                snapshot[menu].append(card)
        return snapshot

    def _decode_legacy(self, raw: dict) -> Snapshot:
        now = self.clock()
        snapshot = empty_snapshot()
        for key, names in raw.items():
            try:
                menu = MenuKind(key)
            except ValueError:
                logger.warning(f"Dropping unknown menu {key!r} from legacy snapshot")
                continue
            if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
                raise TypeError(f"legacy entries for {key!r} must be a list of strings")
            for name in names:
                if not name.strip():
                    logger.warning(f"Skipping blank legacy entry in {key!r}")
                    continue
                snapshot[menu].append(
                    Card(card_id=self.id_factory(), name=name, menu=menu, created_at=now)
                )
        return snapshot

    def load(self) -> Snapshot:
        """
        Read the stored snapshot.

        Missing blob → empty snapshot (first run).
        Unreadable blob → DecodeError.
        """
        self.migrated = False
        blob = self.kv.get(self.key)
        if blob is None:
            logger.info(f"No snapshot under {self.key!r}, starting empty")
            return empty_snapshot()
        return self.decode(blob)

    def load_or_empty(self) -> Tuple[Snapshot, Optional[DecodeError]]:
        """load(), but an unreadable blob yields an empty snapshot plus the error."""
        try:
            return self.load(), None
        except DecodeError as e:
            logger.error(f"Discarding unreadable snapshot: {e}")
            return empty_snapshot(), e
