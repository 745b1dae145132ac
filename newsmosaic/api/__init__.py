"""HTTP API for the mosaic layout engine."""
