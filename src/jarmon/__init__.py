"""Monobank jar balance monitor with daily Telegram reports."""
