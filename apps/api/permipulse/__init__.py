"""Permipulse API - role-based access control for a small content app."""

__version__ = "0.1.0"
