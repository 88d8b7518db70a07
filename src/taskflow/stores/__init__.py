"""
Store implementations.

Components:
- memory.py: mock in-memory stores seeded from fixtures.py
- sqlite.py: local SQLite-backed stores
- api.py: remote backend over HTTP (httpx)
- common.py: small helpers shared by the local stores

All of them satisfy the Protocols in core/ports.py.
"""
