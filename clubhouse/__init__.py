"""Clubhouse: clubs, teams, tournaments and live matches for youth and amateur football."""

__version__ = "0.1.0"
