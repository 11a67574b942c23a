import logging
from datetime import datetime, timezone, timedelta
import requests
from flask import current_app
from skyweave.integrations.errors import NoDataError, OutOfRangeError, ProviderUnavailableError

logger = logging.getLogger(__name__)

HISTORY_MAX_DAYS_BACK = 365
FORECAST_MAX_DAYS_AHEAD = 16
# Neither source reports visibility for a whole day; treat it as clear.
DEFAULT_VISIBILITY = 10000


def supported_date_range(now=None):
    """(earliest, latest) calendar dates a weather summary can be produced for."""
    today = (now or datetime.now(timezone.utc)).date()
    return (
        today - timedelta(days=HISTORY_MAX_DAYS_BACK),
        today + timedelta(days=FORECAST_MAX_DAYS_AHEAD),
    )


def aggregate_hourly(samples):
    """
    Collapse hourly history samples into one daily summary.
    Means for temperature, feels-like, pressure, humidity, clouds and wind;
    rain and snow are summed; condition comes from the middle sample.
    """
    if not samples:
        raise NoDataError("no historical data available for this date")

    count = len(samples)
    total_temp = total_feels = total_wind = 0.0
    total_pressure = total_humidity = total_clouds = 0
    rain = snow = 0.0

    for item in samples:
        main = item.get('main') or {}
        total_temp += main.get('temp', 0.0)
        total_feels += main.get('feels_like', 0.0)
        total_pressure += main.get('pressure', 0)
        total_humidity += main.get('humidity', 0)
        total_clouds += (item.get('clouds') or {}).get('all', 0)
        total_wind += (item.get('wind') or {}).get('speed', 0.0)
        rain += (item.get('rain') or {}).get('1h', 0.0)
        snow += (item.get('snow') or {}).get('1h', 0.0)

    condition = description = ''
    midpoint = samples[count // 2].get('weather') or []
    if midpoint:
        condition = midpoint[0].get('main', '')
        description = midpoint[0].get('description', '')

    return {
        'temp': total_temp / count,
        'feels_like': total_feels / count,
        'pressure': int(total_pressure / count),
        'humidity': int(total_humidity / count),
        'clouds': int(total_clouds / count),
        'visibility': DEFAULT_VISIBILITY,
        'wind_speed': total_wind / count,
        'wind_deg': 0,
        'condition': condition,
        'description': description,
        'rain': rain,
        'snow': snow,
    }


def forecast_day_summary(entry):
    """Map one entry of the daily forecast list onto the summary shape."""
    weather = entry.get('weather') or []
    condition = weather[0].get('main', '') if weather else ''
    description = weather[0].get('description', '') if weather else ''

    return {
        'temp': (entry.get('temp') or {}).get('day', 0.0),
        'feels_like': (entry.get('feels_like') or {}).get('day', 0.0),
        'pressure': entry.get('pressure', 0),
        'humidity': entry.get('humidity', 0),
        'clouds': entry.get('clouds', 0),
        'visibility': DEFAULT_VISIBILITY,
        'wind_speed': entry.get('speed', 0.0),
        'wind_deg': entry.get('deg', 0),
        'condition': condition,
        'description': description,
        'rain': entry.get('rain', 0.0) or 0.0,
        'snow': entry.get('snow', 0.0) or 0.0,
    }


class WeatherProvider:
    def __init__(self, app_config=None):
        config = app_config or current_app.config
        self.api_key = config.get('OPENWEATHER_API_KEY')
        self.history_url = config.get(
            'OPENWEATHER_HISTORY_URL', 'https://history.openweathermap.org/data/2.5/history/city'
        )
        self.forecast_url = config.get(
            'OPENWEATHER_FORECAST_URL', 'https://api.openweathermap.org/data/2.5/forecast/daily'
        )

    def fetch_summary(self, lat, lon, target_date, now=None):
        """
        Weather summary for a calendar date at (lat, lon).
        Past dates (up to a year back, today included) use hourly history;
        future dates up to 16 days ahead use the daily forecast.
        """
        if not self.api_key:
            raise ProviderUnavailableError("OpenWeather API key not configured")

        now = now or datetime.now(timezone.utc)
        today = now.date()
        earliest, latest = supported_date_range(now)

        if target_date < earliest:
            raise OutOfRangeError(
                f"historical data only available for the past year (since {earliest.isoformat()})"
            )

        if target_date > today:
            days_ahead = (target_date - today).days
            if target_date > latest:
                raise OutOfRangeError(
                    f"forecast only available for up to {FORECAST_MAX_DAYS_AHEAD} days ahead"
                )
            return self._fetch_forecast(lat, lon, days_ahead)

        return self._fetch_history(lat, lon, target_date)

    def _fetch_history(self, lat, lon, target_date):
        start = datetime(target_date.year, target_date.month, target_date.day, tzinfo=timezone.utc)
        end = start + timedelta(hours=24)
        data = self._get(self.history_url, {
            'lat': lat,
            'lon': lon,
            'type': 'hour',
            'start': int(start.timestamp()),
            'end': int(end.timestamp()),
            'units': 'metric',
        }, 'history')

        samples = data.get('list') or []
        logger.info(f"History for ({lat}, {lon}) on {target_date}: {len(samples)} hourly samples")
        return aggregate_hourly(samples)

    def _fetch_forecast(self, lat, lon, days_ahead):
        data = self._get(self.forecast_url, {
            'lat': lat,
            'lon': lon,
            'cnt': days_ahead + 1,
            'units': 'metric',
        }, 'forecast')

        entries = data.get('list') or []
        if len(entries) <= days_ahead:
            raise NoDataError(f"no forecast data available {days_ahead} days ahead")
        logger.info(f"Forecast for ({lat}, {lon}): using day +{days_ahead} of {len(entries)}")
        return forecast_day_summary(entries[days_ahead])

    def _get(self, url, params, label):
        params = {**params, 'appid': self.api_key}
        try:
            resp = requests.get(url, params=params, timeout=15)
        except requests.RequestException as e:
            raise ProviderUnavailableError(f"{label} API request failed: {e}") from e

        if resp.status_code != 200:
            raise ProviderUnavailableError(f"{label} API error: {resp.status_code} - {resp.text[:200]}")

        try:
            return resp.json()
        except ValueError as e:
            raise ProviderUnavailableError(f"failed to parse {label} response: {e}") from e
