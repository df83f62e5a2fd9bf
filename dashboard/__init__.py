"""HTTP layer over the analytics read API."""
