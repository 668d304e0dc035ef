"""HTTP security layer: CORS and rate limiting."""
