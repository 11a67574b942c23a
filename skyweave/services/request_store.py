import logging
from datetime import datetime, timezone, timedelta
from skyweave.extensions import db
from skyweave.integrations.errors import RequestNotFoundError
from skyweave.models.request import (
    WeatherRequest,
    STATUS_PENDING, STATUS_GEOCODING, STATUS_WEATHER_FETCHING,
    STATUS_WEATHER_FETCHED, STATUS_CONFIRMED, STATUS_PROCESSING,
    STATUS_COMPLETED, STATUS_CANCELLED, STATUS_ERROR,
    ACTIVE_STATUSES,
)

logger = logging.getLogger(__name__)


def describe_precipitation(weather):
    rain = weather.get('rain') or 0
    snow = weather.get('snow') or 0
    if rain > 0:
        return f"Rain: {rain:.1f}mm"
    if snow > 0:
        return f"Snow: {snow:.1f}mm"
    return ''


class RequestStore:
    """
    Durable state for pipeline requests.

    Every stage update is a single conditional UPDATE that only matches while
    the row is in one of the stage's allowed source statuses, and stamps the
    new status and updated_at together with the stage's fields. The return
    value says whether the row actually moved, so a status can never go
    backwards and a terminal request is never touched again.
    """

    def create(self, request_id, user_id, location_input, target_date, time_of_day, image_path):
        now = datetime.now(timezone.utc)
        req = WeatherRequest(
            id=request_id,
            user_id=user_id,
            location_input=location_input,
            target_date=target_date,
            time_of_day=time_of_day or '',
            image_path=image_path,
            status=STATUS_PENDING,
            created_at=now,
            updated_at=now,
        )
        db.session.add(req)
        db.session.commit()
        logger.info(f"Created request {request_id} for '{location_input}' on {target_date}")
        return req

    def get(self, request_id):
        # populate_existing: pollers must see writes committed by other sessions
        req = db.session.get(WeatherRequest, request_id, populate_existing=True)
        if req is None:
            raise RequestNotFoundError(request_id)
        return req

    def begin_geocoding(self, request_id):
        return self._transition(request_id, (STATUS_PENDING,), STATUS_GEOCODING)

    def update_geocode(self, request_id, name, country, lat, lon):
        return self._transition(
            request_id, (STATUS_GEOCODING,), STATUS_WEATHER_FETCHING,
            location_name=name,
            country=country,
            latitude=lat,
            longitude=lon,
        )

    def update_weather(self, request_id, weather, prompt):
        return self._transition(
            request_id, (STATUS_WEATHER_FETCHING,), STATUS_WEATHER_FETCHED,
            weather_condition=weather.get('condition'),
            weather_description=weather.get('description'),
            temperature=weather.get('temp'),
            feels_like=weather.get('feels_like'),
            pressure=weather.get('pressure'),
            humidity=weather.get('humidity'),
            clouds=weather.get('clouds'),
            wind_speed=weather.get('wind_speed'),
            visibility=weather.get('visibility'),
            precipitation=describe_precipitation(weather),
            prompt=prompt,
        )

    def claim_confirmation(self, request_id):
        """Move weather_fetched -> confirmed. Only one caller can ever win this."""
        return self._transition(request_id, (STATUS_WEATHER_FETCHED,), STATUS_CONFIRMED)

    def cancel(self, request_id):
        return self._transition(request_id, (STATUS_WEATHER_FETCHED,), STATUS_CANCELLED)

    def update_job(self, request_id, job_id):
        return self._transition(request_id, (STATUS_CONFIRMED,), STATUS_PROCESSING, job_id=job_id)

    def update_result(self, request_id, result_path):
        return self._transition(
            request_id, (STATUS_PROCESSING,), STATUS_COMPLETED,
            result_image_path=result_path,
        )

    def mark_cancelled_by_provider(self, request_id):
        return self._transition(request_id, (STATUS_PROCESSING,), STATUS_CANCELLED)

    def mark_error(self, request_id, message):
        moved = self._transition(request_id, ACTIVE_STATUSES, STATUS_ERROR, error_message=message)
        if not moved:
            logger.warning(f"Request {request_id} already terminal, dropping error: {message}")
        return moved

    def list_stale(self, older_than_minutes, now=None):
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=older_than_minutes)
        return WeatherRequest.query.filter(
            WeatherRequest.status.in_(ACTIVE_STATUSES),
            WeatherRequest.updated_at < cutoff,
        ).order_by(WeatherRequest.updated_at).all()

    def _transition(self, request_id, from_statuses, to_status, **fields):
        values = dict(fields)
        values['status'] = to_status
        values['updated_at'] = datetime.now(timezone.utc)

        try:
            moved = WeatherRequest.query.filter(
                WeatherRequest.id == request_id,
                WeatherRequest.status.in_(from_statuses),
            ).update(values, synchronize_session=False)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        if moved == 0:
            logger.info(
                f"Request {request_id}: no transition to {to_status} "
                f"(expected status in {list(from_statuses)})"
            )
            return False

        logger.debug(f"Request {request_id} -> {to_status}")
        return True
