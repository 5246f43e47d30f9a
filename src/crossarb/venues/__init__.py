"""Venue clients (Polymarket, Kalshi) behind one async protocol."""

from crossarb.venues.base import VenueClient, VenueError, VenueOrderError, VenueQuoteFetcher

__all__ = ["VenueClient", "VenueError", "VenueOrderError", "VenueQuoteFetcher"]
