"""
Configuration package for Flickering.

This package contains the runtime settings, the configuration file loader
and the read-only configuration repository.
"""

__all__ = ["settings", "loader", "repository"]
