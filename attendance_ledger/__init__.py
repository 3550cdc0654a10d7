"""Attendance ledger and voice sample service."""

__version__ = "1.0.0"
