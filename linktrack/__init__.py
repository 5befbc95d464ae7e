"""Tracked short-link redirects with social previews and click statistics."""

__version__ = "1.0.0"
