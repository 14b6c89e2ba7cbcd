"""Routers for the Hookserver application."""
