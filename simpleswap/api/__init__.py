"""HTTP API for the exchange pool."""
