"""Readers for rule list files."""
