"""Directory traversal and plan rendering.

This module provides the walker that enumerates the files selected for backup and
the tree representation used to preview a copy plan.
"""
