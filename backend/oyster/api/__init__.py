"""HTTP API for the Oyster card system."""
