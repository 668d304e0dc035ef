"""Exception types shared across the Uplinq API."""

from __future__ import annotations


class UplinqError(Exception):
    """Base class for errors raised by this package."""


class AuthenticationError(UplinqError):
    """A webhook envelope failed signature verification.

    Raised for a bad or missing signature, a wrong secret, tampered bytes,
    a timestamp outside tolerance, or an envelope that is not a JSON object.
    Callers answer with a client error; the event is never dispatched.
    """


class HandlerError(UplinqError):
    """A per-type webhook handler raised while processing a verified event.

    Recovered by the dispatcher: logged and reported on the dispatch result,
    never propagated to the webhook caller.
    """

    def __init__(self, event_type: str, cause: BaseException):
        super().__init__(f"Handler for {event_type} failed: {cause}")
        self.event_type = event_type
        self.cause = cause


class PaymentError(UplinqError):
    """The payment provider rejected or failed a request."""


class PaymentsNotConfiguredError(PaymentError):
    """No Stripe secret key is configured."""


class AttachmentError(UplinqError):
    """An uploaded attachment could not be decoded or exceeds the limits."""
