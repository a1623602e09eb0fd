"""Contact form relay API with per-client sliding-window rate limiting."""
