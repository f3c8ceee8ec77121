"""Adapters that connect the core ports to Telegram, SQLite and the inbox."""
