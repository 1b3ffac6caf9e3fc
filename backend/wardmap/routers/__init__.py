"""Routers subpackage."""
