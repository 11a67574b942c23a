import logging
import requests
from flask import current_app
from skyweave.integrations.errors import NotFoundError, ProviderUnavailableError

logger = logging.getLogger(__name__)


def looks_like_zip(location):
    """Any digit means a postal code ("10001", "SW1A 1AA", "75001,FR")."""
    return any(ch.isdigit() for ch in location)


class Geocoder:
    def __init__(self, app_config=None):
        config = app_config or current_app.config
        self.api_key = config.get('OPENWEATHER_API_KEY')
        self.base_url = config.get('OPENWEATHER_GEO_URL', 'https://api.openweathermap.org/geo/1.0').rstrip('/')

    def lookup(self, location):
        """
        Resolve free text to {name, country, lat, lon}.
        Supports "city", "city,country", "zipcode" and "zipcode,country".
        """
        if not self.api_key:
            raise ProviderUnavailableError("OpenWeather API key not configured")

        location = (location or '').strip()
        if not location:
            raise NotFoundError("location not found")

        if looks_like_zip(location):
            data = self._get('zip', {'zip': location})
            # zip lookups return one object, or 404 when unknown
            if not data:
                raise NotFoundError(f"no match for postal code '{location}'")
            match = data
        else:
            data = self._get('direct', {'q': location, 'limit': 1})
            if not data:
                raise NotFoundError("location not found")
            match = data[0]

        result = {
            'name': match.get('name', ''),
            'country': match.get('country', ''),
            'lat': float(match['lat']),
            'lon': float(match['lon']),
        }
        logger.info(f"Geocoded '{location}' -> {result['name']}, {result['country']} ({result['lat']}, {result['lon']})")
        return result

    def _get(self, endpoint, params):
        params = {**params, 'appid': self.api_key}
        try:
            resp = requests.get(f'{self.base_url}/{endpoint}', params=params, timeout=10)
        except requests.RequestException as e:
            raise ProviderUnavailableError(f"geocoding API request failed: {e}") from e

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise ProviderUnavailableError(f"geocoding API error: {resp.status_code} - {resp.text[:200]}")

        try:
            return resp.json()
        except ValueError as e:
            raise ProviderUnavailableError(f"failed to parse geocoding response: {e}") from e
