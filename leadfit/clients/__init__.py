"""Clients for external API interactions."""
from leadfit.clients.places_client import PlacesClient
from leadfit.clients.demographics_client import DemographicsClient
from leadfit.clients.website_signals_client import WebsiteSignalsClient

__all__ = ["PlacesClient", "DemographicsClient", "WebsiteSignalsClient"]
