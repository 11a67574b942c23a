from datetime import datetime, timezone
from skyweave.extensions import db
from sqlalchemy import func

STATUS_PENDING = 'pending'
STATUS_GEOCODING = 'geocoding'
STATUS_WEATHER_FETCHING = 'weather_fetching'
STATUS_WEATHER_FETCHED = 'weather_fetched'
STATUS_CONFIRMED = 'confirmed'
STATUS_PROCESSING = 'processing'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'
STATUS_ERROR = 'error'

TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED, STATUS_ERROR)
ACTIVE_STATUSES = (
    STATUS_PENDING, STATUS_GEOCODING, STATUS_WEATHER_FETCHING,
    STATUS_WEATHER_FETCHED, STATUS_CONFIRMED, STATUS_PROCESSING,
)


def _utcnow():
    return datetime.now(timezone.utc)


class WeatherRequest(db.Model):
    __tablename__ = 'requests'

    id = db.Column(db.String(32), primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    location_input = db.Column(db.String(256), nullable=False)
    target_date = db.Column(db.Date, nullable=False)
    time_of_day = db.Column(db.String(64), nullable=False, default='')
    image_path = db.Column(db.String(1024), nullable=False)

    # Geocode stage
    location_name = db.Column(db.String(256))
    country = db.Column(db.String(64))
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)

    # Weather stage
    weather_condition = db.Column(db.String(64))
    weather_description = db.Column(db.String(256))
    temperature = db.Column(db.Float)
    feels_like = db.Column(db.Float)
    pressure = db.Column(db.Integer)
    humidity = db.Column(db.Integer)
    clouds = db.Column(db.Integer)
    wind_speed = db.Column(db.Float)
    visibility = db.Column(db.Integer)
    precipitation = db.Column(db.String(64))
    prompt = db.Column(db.Text)

    # Transform stage
    job_id = db.Column(db.String(128))
    result_image_path = db.Column(db.String(1024))

    status = db.Column(db.String(32), nullable=False, default=STATUS_PENDING)
    error_message = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        db.Index('ix_requests_user_id', 'user_id'),
        db.Index('ix_requests_status', 'status'),
        db.Index('ix_requests_job_id', 'job_id'),
    )

    @property
    def location_label(self):
        if self.location_name and self.country:
            return f"{self.location_name}, {self.country}"
        return self.location_name or self.location_input

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def to_dict(self):
        return {
            'id': self.id,
            'location_input': self.location_input,
            'target_date': self.target_date.isoformat(),
            'time_of_day': self.time_of_day,
            'location': {
                'name': self.location_name,
                'country': self.country,
                'latitude': self.latitude,
                'longitude': self.longitude,
            },
            'weather': {
                'condition': self.weather_condition,
                'description': self.weather_description,
                'temperature': self.temperature,
                'feels_like': self.feels_like,
                'pressure': self.pressure,
                'humidity': self.humidity,
                'clouds': self.clouds,
                'wind_speed': self.wind_speed,
                'visibility': self.visibility,
                'precipitation': self.precipitation,
            },
            'prompt': self.prompt,
            'job_id': self.job_id,
            'status': self.status,
            'error_message': self.error_message,
            'has_result': self.status == STATUS_COMPLETED and bool(self.result_image_path),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
