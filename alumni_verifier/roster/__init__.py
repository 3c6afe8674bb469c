"""Roster file parsing."""

from .parser import RosterColumns, RosterParse, parse_roster, parse_verification_csv

__all__ = ["RosterColumns", "RosterParse", "parse_roster", "parse_verification_csv"]
