"""Accounting back-office core: time reporting, audit trail and exports."""

__version__ = "0.1.0"
