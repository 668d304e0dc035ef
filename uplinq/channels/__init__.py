"""Outbound notification channels (SMTP email)."""
