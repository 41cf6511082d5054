"""Command-line interface for treecopy."""
