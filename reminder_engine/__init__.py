"""Local notification scheduling and reconciliation engine for reminders."""

__version__ = "0.1.0"
