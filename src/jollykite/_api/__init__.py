"""Upstream source adapters."""

from jollykite._api._common import WindSource
from jollykite._api.ambient import AmbientWeatherSource
from jollykite._api.openmeteo import OpenMeteoForecast
from jollykite._api.proxy import ProxyStationSource

__all__ = ["AmbientWeatherSource", "OpenMeteoForecast", "ProxyStationSource", "WindSource"]
