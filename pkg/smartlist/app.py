"""
SmartListApp: explicit lifecycle around CardStore + PersistenceCodec.

    with SmartListApp(Config.load()) as store:
        store.create_card(MenuKind.TODO, "Buy milk")

start() loads the stored snapshot before the store is handed out, so no
mutation can race the startup load or a legacy migration. A migrated
legacy snapshot is written back before start() returns.

last_error holds the latest load or save failure, save_error only save
failures. Both may be set from the writer thread when saves run in the
background.
"""
import logging
import threading
from typing import Optional

from .codec import PersistenceCodec, new_card_id
from .config import Config
from .errors import PersistenceError, WriteError
from .events import LOAD_FAILED, SAVE_FAILED, EventBus
from .kv import SqliteKeyValueStore
from .schema import utc_now
from .store import CardStore
from .writer import SnapshotWriter

logger = logging.getLogger(__name__)


class SmartListApp:
    """Owns the store, codec and writer for one process."""

    def __init__(self, config: Optional[Config] = None, kv=None, clock=None, id_factory=None):
        self.config = config or Config()
        self.kv = kv
        self.clock = clock or utc_now
        self.id_factory = id_factory or new_card_id
        self.events = EventBus()
        self.last_error: Optional[PersistenceError] = None
        self.save_error: Optional[PersistenceError] = None
        self.codec: Optional[PersistenceCodec] = None
        self.writer: Optional[SnapshotWriter] = None
        self._store: Optional[CardStore] = None
        self._error_lock = threading.Lock()
        self.events.subscribe(SAVE_FAILED, self._record_error)
        self.events.subscribe(LOAD_FAILED, self._record_error)
        self.events.subscribe(SAVE_FAILED, self._record_save_error)

    def _record_error(self, error: PersistenceError) -> None:
        with self._error_lock:
            self.last_error = error

    def _record_save_error(self, error: PersistenceError) -> None:
        with self._error_lock:
            self.save_error = error

    @property
    def store(self) -> CardStore:
        if self._store is None:
            raise RuntimeError("SmartListApp.start() has not been called")
        return self._store

    def start(self) -> CardStore:
        """Load state and build the store. Calling twice returns the same store."""
        if self._store is not None:
            return self._store
        if self.kv is None:
            self.kv = SqliteKeyValueStore(self.config.db_path)
        self.codec = PersistenceCodec(
            self.kv,
            key=self.config.storage_key,
            clock=self.clock,
            id_factory=self.id_factory,
        )

        snapshot, error = self.codec.load_or_empty()
        if error is not None:
            self.events.emit(LOAD_FAILED, error=error)

        self.writer = SnapshotWriter(
            self.codec.write,
            background=self.config.background_saves,
            on_error=lambda e: self.events.emit(SAVE_FAILED, error=e),
        )
        self._store = CardStore(
            snapshot,
            events=self.events,
            on_change=self._persist,
            clock=self.clock,
            id_factory=self.id_factory,
            max_name_length=self.config.max_name_length,
        )
        logger.info(f"Loaded {len(self._store)} cards ({self._store})")
        if self.codec.migrated:
            # Legacy cards got fresh ids; store them before anyone reads them
            logger.info("Writing migrated snapshot in the current format")
            self._store.flush()
        return self._store

    def _persist(self, snapshot) -> None:
        if self.writer is None:
            raise WriteError("SmartListApp is closed")
        # Encode on the caller's thread so EncodeError reaches CardStore directly
        self.writer.submit(self.codec.encode(snapshot))

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued saves to land."""
        if self.writer is None:
            return True
        return self.writer.flush(timeout)

    def close(self) -> None:
        """Drain pending saves and stop the writer."""
        if self.writer is not None:
            self.writer.close()
            logger.info("SmartList closed")
        self.writer = None

    def __enter__(self) -> CardStore:
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
