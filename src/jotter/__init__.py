"""Structural editor for nested bullet lists embedded in free-form documents."""

__version__ = "0.1.0"
