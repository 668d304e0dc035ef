"""Webhook inbound system.

Receives Stripe webhooks: each envelope is signature-verified against the
raw body, then routed to the handler registered for its event type.
"""
