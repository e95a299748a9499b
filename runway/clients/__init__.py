"""HTTP clients for content sources and the generation endpoint."""
