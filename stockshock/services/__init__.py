"""Core monitoring services."""
