"""Uplinq API: Stripe payments, webhook dispatch and form notifications."""
