# src/taskflow/stores/fixtures.py

"""Static seed data for the mock backend."""

from __future__ import annotations

from typing import Any

CATEGORIES: list[dict[str, Any]] = [
    {"id": 1, "name": "Work", "color": "#3B82F6", "icon": "Briefcase"},
    {"id": 2, "name": "Personal", "color": "#10B981", "icon": "User"},
    {"id": 3, "name": "Shopping", "color": "#F59E0B", "icon": "ShoppingCart"},
    {"id": 4, "name": "Health", "color": "#EF4444", "icon": "Heart"},
]

TASKS: list[dict[str, Any]] = [
    {
        "id": 1,
        "title": "Prepare quarterly report",
        "description": "Collect numbers from finance and draft the summary",
        "category": "Work",
        "priority": "high",
        "due_date": "2026-10-20T17:00:00Z",
        "completed": False,
        "created_at": "2026-10-01T09:00:00Z",
        "completed_at": None,
    },
    {
        "id": 2,
        "title": "Book dentist appointment",
        "description": "",
        "category": "Health",
        "priority": "medium",
        "due_date": "2026-10-25T10:00:00Z",
        "completed": False,
        "created_at": "2026-10-02T12:30:00Z",
        "completed_at": None,
    },
    {
        "id": 3,
        "title": "Buy groceries",
        "description": "Milk, eggs, bread, coffee",
        "category": "Shopping",
        "priority": "low",
        "due_date": None,
        "completed": True,
        "created_at": "2026-10-03T08:15:00Z",
        "completed_at": "2026-10-03T18:40:00Z",
    },
    {
        "id": 4,
        "title": "Review pull requests",
        "description": "Team backlog from last sprint",
        "category": "Work",
        "priority": "medium",
        "due_date": "2026-10-18T15:00:00Z",
        "completed": False,
        "created_at": "2026-10-05T14:00:00Z",
        "completed_at": None,
        "assigned_contact": 2,
    },
    {
        "id": 5,
        "title": "Call mom",
        "description": "",
        "category": "Personal",
        "priority": "high",
        "due_date": None,
        "completed": False,
        "created_at": "2026-10-06T19:20:00Z",
        "completed_at": None,
    },
]

CONTACTS: list[dict[str, Any]] = [
    {
        "id": 1,
        "first_name": "Sarah",
        "last_name": "Johnson",
        "email": "sarah.johnson@example.com",
        "phone": "+1 555 0101",
        "address": "12 Main St, Springfield",
    },
    {
        "id": 2,
        "first_name": "Michael",
        "last_name": "Chen",
        "email": "michael.chen@example.com",
        "phone": "+1 555 0102",
        "address": "",
    },
    {
        "id": 3,
        "first_name": "Emily",
        "last_name": "Rodriguez",
        "email": "emily.rodriguez@example.com",
        "phone": "",
        "address": "48 Oak Ave, Riverton",
    },
]
