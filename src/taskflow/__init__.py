"""
TaskFlow: task tracking with categories and contacts.

Subpackages:
- core/: models, errors, ports, derived task view, board (CRUD orchestration)
- stores/: mock (in-memory), SQLite and remote API store implementations
- cli/: composition root, slash commands, entry point
- connectors/: console REPL
"""

__version__ = "0.1.0"
