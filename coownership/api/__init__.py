"""HTTP API for the co-ownership consensus core."""
