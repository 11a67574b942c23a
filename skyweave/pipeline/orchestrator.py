import logging
import time
from flask import current_app
from skyweave.integrations.errors import (
    PipelineError,
    PollFailedError,
    RequestNotFoundError,
    TransformTimeoutError,
)
from skyweave.integrations.geocoder import Geocoder
from skyweave.integrations.image_transform import (
    ImageTransformClient,
    first_output_url,
    JOB_SUCCEEDED, JOB_FAILED, JOB_CANCELED,
)
from skyweave.integrations.weather import WeatherProvider
from skyweave.models.request import STATUS_CONFIRMED
from skyweave.pipeline.prompt import build_prompt
from skyweave.services.request_store import RequestStore
from skyweave.services.storage import ImageStorage

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 5
POLL_MAX_ATTEMPTS = 120


def _fail(store, request_id, message, exc=None):
    if exc is not None and not isinstance(exc, PipelineError):
        logger.error(f"Request {request_id}: {message}", exc_info=exc)
    else:
        logger.error(f"Request {request_id}: {message}")
    store.mark_error(request_id, message)


def run_weather_stage(request_id, geocoder=None, weather_provider=None):
    """
    Stages 1-2: geocode the location, fetch the weather for the target date and
    synthesize the edit prompt. Ends in weather_fetched or error.
    """
    store = RequestStore()
    try:
        req = store.get(request_id)
    except RequestNotFoundError:
        logger.error(f"Weather stage: request {request_id} does not exist")
        return

    try:
        started = store.begin_geocoding(request_id)
    except Exception as e:
        _fail(store, request_id, f"Failed to start weather stage: {e}", e)
        return
    if not started:
        logger.info(f"Weather stage for {request_id} skipped: status is {req.status}")
        return

    logger.info(f"--- Request {request_id}: geocoding '{req.location_input}' ---")
    try:
        geocoder = geocoder or Geocoder()
        place = geocoder.lookup(req.location_input)
    except Exception as e:
        _fail(store, request_id, f"Failed to find location: {e}", e)
        return

    try:
        saved = store.update_geocode(request_id, place['name'], place['country'], place['lat'], place['lon'])
    except Exception as e:
        _fail(store, request_id, f"Failed to save location: {e}", e)
        return
    if not saved:
        logger.warning(f"Request {request_id} left geocoding before results were saved")
        return

    label = place['name']
    if place['country']:
        label += ', ' + place['country']

    logger.info(f"--- Request {request_id}: fetching weather for {label} on {req.target_date} ---")
    try:
        weather_provider = weather_provider or WeatherProvider()
        weather = weather_provider.fetch_summary(place['lat'], place['lon'], req.target_date)
    except Exception as e:
        _fail(store, request_id, f"Failed to fetch weather: {e}", e)
        return

    prompt = build_prompt(weather, label, req.time_of_day)

    try:
        saved = store.update_weather(request_id, weather, prompt)
    except Exception as e:
        _fail(store, request_id, f"Failed to save weather data: {e}", e)
        return
    if not saved:
        logger.warning(f"Request {request_id} left weather_fetching before weather was saved")
        return

    logger.info(f"Weather data fetched successfully for request {request_id}")


def run_transform_stage(request_id, client=None, storage=None):
    """
    Stages 4-5: upload the source photo, submit the edit job, poll it and
    download the result. Only runs for a request that has been confirmed.
    """
    store = RequestStore()
    try:
        req = store.get(request_id)
    except RequestNotFoundError:
        logger.error(f"Transform stage: request {request_id} does not exist")
        return

    if req.status != STATUS_CONFIRMED:
        logger.info(f"Transform stage for {request_id} skipped: status is {req.status}")
        return

    client = client or ImageTransformClient()
    storage = storage or ImageStorage()

    logger.info(f"Uploading image for request {request_id}")
    try:
        image_url = client.upload(req.image_path)
    except Exception as e:
        _fail(store, request_id, f"Failed to upload image: {e}", e)
        return

    try:
        job_id = client.submit(req.prompt, image_url)
    except Exception as e:
        _fail(store, request_id, f"Failed to submit transform job: {e}", e)
        return

    try:
        recorded = store.update_job(request_id, job_id)
    except Exception as e:
        # the job is already running upstream; keep its id in the message for manual follow-up
        _fail(store, request_id, f"Failed to record transform job {job_id}: {e}", e)
        return
    if not recorded:
        logger.warning(f"Request {request_id} is no longer confirmed; abandoning job {job_id}")
        return

    try:
        _await_result(store, request_id, job_id, client, storage.result_path(request_id))
    except TransformTimeoutError as e:
        _fail(store, request_id, str(e))
    except Exception as e:
        _fail(store, request_id, f"Image processing failed: {e}", e)


def _await_result(store, request_id, job_id, client, result_path):
    interval = current_app.config.get('TRANSFORM_POLL_INTERVAL', POLL_INTERVAL_SECONDS)
    max_attempts = current_app.config.get('TRANSFORM_POLL_MAX_ATTEMPTS', POLL_MAX_ATTEMPTS)

    for attempt in range(1, max_attempts + 1):
        if interval:
            time.sleep(interval)

        try:
            job = client.poll(job_id)
        except PollFailedError as e:
            logger.warning(f"Poll {attempt}/{max_attempts} for job {job_id} failed: {e}")
            continue

        status = job.get('status')
        logger.info(f"Job {job_id} status: {status} (attempt {attempt}/{max_attempts})")

        if status == JOB_SUCCEEDED:
            output_url = first_output_url(job.get('output'))
            if not output_url:
                _fail(store, request_id, "No output URL in transform result")
                return

            try:
                client.download(output_url, result_path)
            except Exception as e:
                _fail(store, request_id, f"Failed to download result: {e}", e)
                return

            if not store.update_result(request_id, result_path):
                logger.warning(f"Request {request_id} left processing before the result was saved")
                return
            logger.info(f"Request {request_id} completed successfully")
            return

        if status == JOB_FAILED:
            _fail(store, request_id, job.get('error') or "Image transform failed")
            return

        if status == JOB_CANCELED:
            logger.info(f"Job {job_id} canceled for request {request_id}")
            store.mark_cancelled_by_provider(request_id)
            return

    raise TransformTimeoutError(max_attempts)
