"""Application layer: use case orchestration over the core and the database boundary."""
