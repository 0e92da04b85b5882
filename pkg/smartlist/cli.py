#!/usr/bin/env python3
"""
SmartList: command line host for the card store.

Usage:
    smartlist menus                         # card count per menu
    smartlist list "To Do"                  # cards in a menu, newest first
    smartlist add shopping Oat milk         # create a card
    smartlist delete <card-id>              # move a card to Deleted
    smartlist purge <card-id>               # remove a card from Deleted
    smartlist --db /tmp/cards.db menus      # use another database
"""

import argparse
import logging
import sys
from pathlib import Path

from .app import SmartListApp
from .config import Config
from .errors import ValidationError
from .schema import Card, MenuKind

def _print_card(card: Card):
    """Print a compact one-line card summary to stdout."""
    created = card.created_at.strftime("%Y-%m-%d %H:%M")
    print(f"  {card.card_id}  {created}  {card.name}")


def _menu(value: str) -> MenuKind:
    try:
        return MenuKind.from_str(value)
    except ValueError:
        choices = ", ".join(repr(m.value) for m in MenuKind)
        raise argparse.ArgumentTypeError(f"unknown menu {value!r} (choose from {choices})")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="smartlist",
        description="SmartList, menus of cards with two-stage delete",
    )
    ap.add_argument("--config", default=None, help="Path to config.yaml")
    ap.add_argument("--db", default=None, help="SQLite database path (overrides config)")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("menus", help="Show card counts per menu")

    p = sub.add_parser("list", help="List cards in a menu, newest first")
    p.add_argument("menu", type=_menu)

    p = sub.add_parser("add", help="Create a card")
    p.add_argument("menu", type=_menu)
    p.add_argument("name", nargs="+")

    p = sub.add_parser("delete", help="Move a card to Deleted")
    p.add_argument("card_id")

    p = sub.add_parser("purge", help="Permanently delete a card from Deleted")
    p.add_argument("card_id")
    return ap


def run(args, app: SmartListApp) -> int:
    """Execute one parsed command against a started app. Returns the exit code."""
    store = app.store

    if args.command == "menus":
        for menu, count in store.counts().items():
            print(f"  {menu.value:<14} {count}")
        return 0

    if args.command == "list":
        cards = store.cards_for_menu(args.menu)
        if not cards:
            print(f"  ({args.menu.value} is empty)")
        for card in cards:
            _print_card(card)
        return 0

    if args.command == "add":
        try:
            card = store.create_card(args.menu, " ".join(args.name))
        except ValidationError as e:
            print(f"  [!] {e}", file=sys.stderr)
            return 1
        _print_card(card)
        return 0 if app.save_error is None else 1

    if args.command == "delete":
        card = store.soft_delete(args.card_id)
        if card is None:
            print(f"  [!] No active card {args.card_id}", file=sys.stderr)
            return 1
        print(f"  Moved \"{card.name}\" to Deleted")
        return 0 if app.save_error is None else 1

    if args.command == "purge":
        card = store.permanently_delete(args.card_id)
        if card is None:
            print(f"  [!] No deleted card {args.card_id}", file=sys.stderr)
            return 1
        print(f"  Permanently deleted \"{card.name}\"")
        return 0 if app.save_error is None else 1

    return 2


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    cfg = Config.load(args.config)
    if args.db:
        cfg.db_path = str(Path(args.db).expanduser())
    # One-shot process: write before exiting
    cfg.background_saves = False

    logging.basicConfig(
        level=getattr(logging, str(cfg.log_level).upper(), logging.INFO),
        format="%(asctime)s [smartlist] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    app = SmartListApp(cfg)
    app.start()
    try:
        return run(args, app)
    finally:
        app.close()


if __name__ == "__main__":
    sys.exit(main())
