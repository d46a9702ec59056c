"""Followup: financial report reconciliation and caching engine.

Pulls customer account data from upstream ERP report endpoints, normalizes
and merges it into an in-memory cache, and serves search/filter/paginate
queries over the cached data.
"""

__version__ = "0.1.0"
