import io
import os
import pytest
from datetime import date, datetime, timezone
from unittest.mock import MagicMock

from skyweave import create_app
from skyweave.extensions import db as _db
from skyweave.models.request import WeatherRequest
from config import TestConfig


@pytest.fixture(scope='session')
def app():
    """Create app with test config."""
    app = create_app(TestConfig)
    return app


@pytest.fixture(autouse=True)
def setup_db(app, tmp_path):
    """Create tables and scratch image dirs before each test, drop after."""
    app.config['UPLOAD_DIR'] = str(tmp_path / 'uploads')
    app.config['RESULT_DIR'] = str(tmp_path / 'results')
    with app.app_context():
        _db.create_all()
        yield
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers(app):
    return {'X-Admin-Key': app.config['ADMIN_API_KEY']}


@pytest.fixture
def db_session(app):
    with app.app_context():
        yield _db.session


@pytest.fixture
def source_image(tmp_path):
    path = tmp_path / 'uploads' / 'source.jpg'
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b'\xff\xd8\xff\xe0fake-jpeg')
    return str(path)


@pytest.fixture
def make_request(db_session, source_image):
    """Insert a request already sitting at the given status."""
    def _make(request_id='a' * 32, status='pending', **fields):
        values = {
            'id': request_id,
            'user_id': 'user-1',
            'location_input': 'Paris',
            'target_date': date(2026, 10, 1),
            'time_of_day': '',
            'image_path': source_image,
            'status': status,
            'updated_at': datetime.now(timezone.utc),
        }
        values.update(fields)
        req = WeatherRequest(**values)
        db_session.add(req)
        db_session.commit()
        return req
    return _make


@pytest.fixture
def sample_weather():
    return {
        'temp': 25.0,
        'feels_like': 24.0,
        'pressure': 1012,
        'humidity': 40,
        'clouds': 15,
        'visibility': 10000,
        'wind_speed': 3.0,
        'wind_deg': 180,
        'condition': 'Clear',
        'description': 'clear sky',
        'rain': 0.0,
        'snow': 0.0,
    }


@pytest.fixture
def fake_geocoder():
    geocoder = MagicMock()
    geocoder.lookup.return_value = {'name': 'Paris', 'country': 'FR', 'lat': 48.8566, 'lon': 2.3522}
    return geocoder


@pytest.fixture
def fake_weather_provider(sample_weather):
    provider = MagicMock()
    provider.fetch_summary.return_value = dict(sample_weather)
    return provider


@pytest.fixture
def fake_transform_client():
    """Transform client whose job succeeds on the first poll and 'downloads' a file."""
    client = MagicMock()
    client.upload.return_value = 'https://files.example/source.jpg'
    client.submit.return_value = 'job-123'
    client.poll.return_value = {
        'id': 'job-123', 'status': 'succeeded',
        'output': ['https://out.example/result.jpg'], 'error': None,
    }

    def _download(url, dest):
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        with open(dest, 'wb') as fh:
            fh.write(b'result-bytes')
        return dest

    client.download.side_effect = _download
    return client


@pytest.fixture
def photo_upload():
    def _upload(name='holiday.jpg'):
        return (io.BytesIO(b'\xff\xd8\xff\xe0fake-jpeg'), name)
    return _upload
