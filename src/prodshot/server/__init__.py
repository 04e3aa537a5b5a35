"""HTTP server for the product shot pipeline."""
