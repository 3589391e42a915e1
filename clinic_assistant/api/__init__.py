"""HTTP API for the clinic assistant."""
