import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')
    ADMIN_API_KEY = os.getenv('ADMIN_API_KEY')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///skyweave.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}

    # Uploads (32MB, same limit the upload form always had)
    MAX_CONTENT_LENGTH = 32 * 1024 * 1024
    DATA_DIR = os.getenv('DATA_DIR', './data')
    UPLOAD_DIR = os.getenv('UPLOAD_DIR', os.path.join(DATA_DIR, 'uploads'))
    RESULT_DIR = os.getenv('RESULT_DIR', os.path.join(DATA_DIR, 'results'))

    # Geocoding + weather
    OPENWEATHER_API_KEY = os.getenv('OPENWEATHER_API_KEY')
    OPENWEATHER_GEO_URL = os.getenv('OPENWEATHER_GEO_URL', 'https://api.openweathermap.org/geo/1.0')
    OPENWEATHER_HISTORY_URL = os.getenv(
        'OPENWEATHER_HISTORY_URL', 'https://history.openweathermap.org/data/2.5/history/city'
    )
    OPENWEATHER_FORECAST_URL = os.getenv(
        'OPENWEATHER_FORECAST_URL', 'https://api.openweathermap.org/data/2.5/forecast/daily'
    )

    # Image transform
    REPLICATE_API_TOKEN = os.getenv('REPLICATE_API_TOKEN')
    REPLICATE_BASE_URL = os.getenv('REPLICATE_BASE_URL', 'https://api.replicate.com/v1')
    REPLICATE_MODEL = os.getenv('REPLICATE_MODEL', 'black-forest-labs/flux-kontext-pro')
    TRANSFORM_POLL_INTERVAL = float(os.getenv('TRANSFORM_POLL_INTERVAL', '5'))
    TRANSFORM_POLL_MAX_ATTEMPTS = int(os.getenv('TRANSFORM_POLL_MAX_ATTEMPTS', '120'))

    # Background tasks
    TASKS_RUN_INLINE = os.getenv('TASKS_RUN_INLINE', 'false').lower() == 'true'

    # Scheduler
    SCHEDULER_ENABLED = os.getenv('SCHEDULER_ENABLED', 'true').lower() == 'true'
    SCHEDULER_API_ENABLED = False
    STALE_REQUEST_MINUTES = int(os.getenv('STALE_REQUEST_MINUTES', '30'))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    ADMIN_API_KEY = 'test-admin-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SCHEDULER_ENABLED = False
    TASKS_RUN_INLINE = True
    TRANSFORM_POLL_INTERVAL = 0
    OPENWEATHER_API_KEY = 'test-weather-key'
    REPLICATE_API_TOKEN = 'test-replicate-token'
