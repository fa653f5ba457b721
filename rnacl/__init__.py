"""Ledger of pipeline nodes with snapshot auditing and acknowledgement."""

__version__ = "0.1.0"