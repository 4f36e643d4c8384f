"""Boundary layer: adapters for external systems (relational store)."""
