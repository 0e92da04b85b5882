"""
Tests for CardStore: create, soft delete, permanent delete, queries, events.
"""
import random

import pytest

from pkg.smartlist.errors import EncodeError, ValidationError
from pkg.smartlist.events import CARD_CREATED, CARD_DELETED, CARD_PURGED, SAVE_FAILED, EventBus
from pkg.smartlist.schema import Card, MenuKind
from pkg.smartlist.store import CardStore


def _assert_consistent(store: CardStore):
    """Every card sits under its own menu and no id appears twice."""
    seen = set()
    for menu, cards in store.snapshot().items():
        for card in cards:
            assert card.menu is menu
            assert card.card_id not in seen
            seen.add(card.card_id)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Create
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_create_card(clock, ids):
    """A new card gets a fresh id, the menu, and the clock's time"""
    store = CardStore(clock=clock, id_factory=ids)
    card = store.create_card(MenuKind.TODO, "Buy milk")

    assert card.card_id == "00000000-0000-4000-8000-000000000001"
    assert card.name == "Buy milk"
    assert card.menu is MenuKind.TODO
    assert card.created_at.year == 2025
    assert store.count_for_menu(MenuKind.TODO) == 1
    assert store.get(card.card_id) == card


def test_create_card_strips_name():
    store = CardStore()
    card = store.create_card(MenuKind.NOTES, "  idea  \n")
    assert card.name == "idea"


def test_create_card_accepts_menu_string():
    store = CardStore()
    assert store.create_card("Shopping List", "Eggs").menu is MenuKind.SHOPPING
    assert store.create_card("reminders", "Dentist").menu is MenuKind.REMINDERS


@pytest.mark.parametrize("name", ["", "   ", "\n\t"])
def test_create_card_rejects_blank_name(name):
    """Blank names are rejected and nothing changes"""
    flushed = []
    store = CardStore(on_change=flushed.append)
    with pytest.raises(ValidationError):
        store.create_card(MenuKind.TODO, name)
    assert len(store) == 0
    assert flushed == []


def test_create_card_rejects_unknown_menu():
    store = CardStore()
    with pytest.raises(ValidationError):
        store.create_card("Groceries", "Eggs")
    assert len(store) == 0


def test_create_card_rejects_long_name():
    store = CardStore(max_name_length=5)
    with pytest.raises(ValidationError):
        store.create_card(MenuKind.TODO, "abcdef")
    assert store.create_card(MenuKind.TODO, "abcde").name == "abcde"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Soft / permanent delete
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_delete_lifecycle(clock, ids):
    """ToDo → Deleted → gone, with id/name/created_at preserved"""
    store = CardStore(clock=clock, id_factory=ids)
    card = store.create_card(MenuKind.TODO, "Buy milk")
    assert store.count_for_menu(MenuKind.TODO) == 1
    assert store.count_for_menu(MenuKind.DELETED) == 0

    deleted = store.soft_delete(card.card_id)
    assert store.count_for_menu(MenuKind.TODO) == 0
    assert store.count_for_menu(MenuKind.DELETED) == 1
    assert deleted.menu is MenuKind.DELETED
    assert (deleted.card_id, deleted.name, deleted.created_at) == (
        card.card_id, card.name, card.created_at
    )

    purged = store.permanently_delete(card.card_id)
    assert purged == deleted
    assert store.count_for_menu(MenuKind.DELETED) == 0
    assert store.get(card.card_id) is None
    assert len(store) == 0


def test_soft_delete_already_deleted_is_noop():
    store = CardStore()
    card = store.create_card(MenuKind.NOTES, "Draft")
    store.soft_delete(card.card_id)
    before = store.snapshot()

    assert store.soft_delete(card.card_id) is None
    assert store.snapshot() == before
    assert store.count_for_menu(MenuKind.DELETED) == 1


def test_soft_delete_unknown_id_is_noop():
    flushed = []
    store = CardStore(on_change=flushed.append)
    store.create_card(MenuKind.TODO, "A")
    assert store.soft_delete("no-such-card") is None
    assert len(flushed) == 1


def test_permanently_delete_only_from_deleted():
    """An active card cannot skip the Deleted stage"""
    store = CardStore()
    card = store.create_card(MenuKind.TODO, "Keep me")
    assert store.permanently_delete(card.card_id) is None
    assert store.count_for_menu(MenuKind.TODO) == 1


def test_permanently_delete_unknown_id_is_noop():
    store = CardStore()
    store.create_card(MenuKind.TODO, "A")
    before = store.snapshot()
    assert store.permanently_delete("missing") is None
    assert store.snapshot() == before


def test_random_operations_keep_invariants():
    """Menu field always matches its list, ids stay unique"""
    rng = random.Random(7)
    store = CardStore()
    ids = []
    for step in range(300):
        op = rng.choice(["create", "create", "delete", "purge"])
        if op == "create":
            menu = rng.choice(MenuKind.active())
            ids.append(store.create_card(menu, f"card {step}").card_id)
        elif op == "delete" and ids:
            store.soft_delete(rng.choice(ids))
        elif op == "purge" and ids:
            store.permanently_delete(rng.choice(ids))
        _assert_consistent(store)
        for menu in MenuKind:
            assert store.count_for_menu(menu) == len(store.cards_for_menu(menu))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Queries
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_cards_for_menu_newest_first(clock):
    store = CardStore(clock=clock)
    first = store.create_card(MenuKind.SHOPPING, "Eggs")
    second = store.create_card(MenuKind.SHOPPING, "Milk")
    third = store.create_card(MenuKind.SHOPPING, "Bread")
    assert [c.name for c in store.cards_for_menu(MenuKind.SHOPPING)] == ["Bread", "Milk", "Eggs"]
    assert store.cards_for_menu(MenuKind.TODO) == []
    assert first.created_at < second.created_at < third.created_at


def test_counts_cover_every_menu():
    store = CardStore()
    store.create_card(MenuKind.NOTES, "n")
    counts = store.counts()
    assert set(counts) == set(MenuKind)
    assert counts[MenuKind.NOTES] == 1
    assert sum(counts.values()) == 1


def test_snapshot_is_a_copy():
    store = CardStore()
    store.create_card(MenuKind.TODO, "A")
    snap = store.snapshot()
    snap[MenuKind.TODO].clear()
    assert store.count_for_menu(MenuKind.TODO) == 1


def test_seed_normalizes_menu_and_drops_duplicates(clock):
    now = clock()
    stray = Card(card_id="x", name="Stray", menu=MenuKind.NOTES, created_at=now)
    dup = Card(card_id="x", name="Dup", menu=MenuKind.TODO, created_at=now)
    store = CardStore({MenuKind.TODO: [stray], MenuKind.REMINDERS: [dup]})

    assert store.count_for_menu(MenuKind.TODO) == 1
    assert store.count_for_menu(MenuKind.REMINDERS) == 0
    assert store.get("x").menu is MenuKind.TODO
    assert store.get("x").name == "Stray"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Events and flush hook
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_events_in_order():
    bus = EventBus()
    seen = []
    bus.subscribe(CARD_CREATED, lambda card: seen.append(("created", card.name)))
    bus.subscribe(CARD_DELETED, lambda card: seen.append(("deleted", card.menu)))
    bus.subscribe(CARD_PURGED, lambda card: seen.append(("purged", card.name)))

    store = CardStore(events=bus)
    card = store.create_card(MenuKind.TODO, "A")
    store.soft_delete(card.card_id)
    store.permanently_delete(card.card_id)

    assert seen == [("created", "A"), ("deleted", MenuKind.DELETED), ("purged", "A")]


def test_every_mutation_flushes_latest_snapshot():
    flushed = []
    store = CardStore(on_change=flushed.append)
    card = store.create_card(MenuKind.TODO, "A")
    store.soft_delete(card.card_id)
    store.permanently_delete(card.card_id)

    assert len(flushed) == 3
    assert flushed[0][MenuKind.TODO][0].name == "A"
    assert flushed[1][MenuKind.DELETED][0].card_id == card.card_id
    assert all(not cards for cards in flushed[2].values())


def test_flush_failure_keeps_memory_and_reports():
    """A failing save is surfaced as save_failed; the mutation stands"""
    bus = EventBus()
    errors = []
    bus.subscribe(SAVE_FAILED, lambda error: errors.append(error))

    def failing(snapshot):
        raise EncodeError("disk on fire")

    store = CardStore(events=bus, on_change=failing)
    card = store.create_card(MenuKind.TODO, "Still here")

    assert store.get(card.card_id) is not None
    assert len(errors) == 1
    assert isinstance(errors[0], EncodeError)
