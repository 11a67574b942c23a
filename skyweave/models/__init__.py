from skyweave.models.request import WeatherRequest

__all__ = [
    'WeatherRequest',
]
