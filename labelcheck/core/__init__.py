"""Core domain logic: ingestion, regulatory context and compliance analysis."""
