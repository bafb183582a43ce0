"""Workout tracker: SQLite storage, scoring rules, role checks and a Flask web app."""

__version__ = "0.1.0"