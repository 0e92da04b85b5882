# SmartList: menus of cards with two-stage delete and JSON snapshot persistence
#
# Components:
#   schema.py  - Data model (MenuKind, Card)
#   errors.py  - Validation and persistence errors
#   kv.py      - Key-value byte stores (memory, SQLite)
#   codec.py   - Snapshot encode/decode and legacy-format migration
#   events.py  - Synchronous event bus
#   writer.py  - Ordered, latest-wins snapshot writer
#   store.py   - In-memory CardStore and the soft-delete state machine
#   config.py  - YAML configuration
#   app.py     - Process lifecycle wiring
#   cli.py     - Command line host
