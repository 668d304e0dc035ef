"""Stripe checkout sessions and payment intents."""
