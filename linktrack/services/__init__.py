"""
Business logic of the link tracker.

Redirect decisions, metadata fetching, geolocation, click logging and stats
live here; endpoints only translate between HTTP and these services.
"""
