"""Shared exceptions and logging helpers."""
