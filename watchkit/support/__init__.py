"""Shared services injected into component factories."""
