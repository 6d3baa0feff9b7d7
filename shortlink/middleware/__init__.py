"""HTTP middleware for request logging and tracing."""
