"""HTTP API for the product catalog."""
