"""Shared infrastructure: settings, logging, database and time helpers."""
