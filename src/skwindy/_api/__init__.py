"""Windy stations API endpoint modules (internal)."""
