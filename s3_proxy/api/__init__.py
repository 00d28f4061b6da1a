"""HTTP API layer for the proxy."""
