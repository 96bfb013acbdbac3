"""
Resep Nusantara client core.

State-synchronization core of the recipe-browsing client:
- favorites: shared favorites store and favorites materializer
- identity: anonymous user identifier and profile
- pagination: catalog pagination drainer
- reviews: review reconciliation pipeline
- navigation: view state machine synced with the URL fragment
- profile_tabs: profile page tabs with stale-result protection
"""

__version__ = "0.1.0"
