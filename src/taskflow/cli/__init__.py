"""Command-line entry point, composition root and slash commands."""
