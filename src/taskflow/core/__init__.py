"""
Core of the app.

Components:
- models.py: Task / Category / Contact records, enums, field validation
- errors.py: store error taxonomy
- ports.py: Protocols the core depends on (stores, notifier)
- view.py: derived task view (filter -> sort -> aggregate), pure functions
- board.py: CRUD orchestration over the stores and local collections
- state.py: AppState record
"""
