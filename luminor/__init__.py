"""Accounts, case handling and tenant inquiries for property management."""

__version__ = "0.1.0"