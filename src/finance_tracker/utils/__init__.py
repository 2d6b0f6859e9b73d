"""Utility helpers for dates, money, and logging."""
