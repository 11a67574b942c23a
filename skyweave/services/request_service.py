import logging
import os
import secrets
from skyweave.extensions import tasks
from skyweave.models.request import STATUS_COMPLETED
from skyweave.pipeline import orchestrator
from skyweave.services.request_store import RequestStore
from skyweave.services.storage import ImageStorage

logger = logging.getLogger(__name__)


def new_request_id():
    return secrets.token_hex(16)


def new_user_id():
    return secrets.token_hex(8)


class RequestService:
    """Operations the HTTP layer exposes: create, read, confirm, cancel, result."""

    def __init__(self, store=None, storage=None):
        self.store = store or RequestStore()
        self.storage = storage or ImageStorage()

    def create_request(self, user_id, location, target_date, time_of_day, upload):
        """Persist a pending request and start the weather stage in the background."""
        request_id = new_request_id()
        image_path = self.storage.save_upload(request_id, upload)
        req = self.store.create(
            request_id=request_id,
            user_id=user_id or new_user_id(),
            location_input=location,
            target_date=target_date,
            time_of_day=time_of_day,
            image_path=image_path,
        )
        tasks.spawn(f'weather:{request_id}', orchestrator.run_weather_stage, request_id)
        return req

    def get_request(self, request_id):
        return self.store.get(request_id)

    def confirm(self, request_id):
        """
        weather_fetched -> confirmed, then start the transform stage.
        Returns True only for the call that won the transition; repeats are no-ops.
        """
        self.store.get(request_id)
        if not self.store.claim_confirmation(request_id):
            logger.info(f"Confirm for {request_id} ignored: already past weather_fetched")
            return False

        tasks.spawn(f'transform:{request_id}', orchestrator.run_transform_stage, request_id)
        return True

    def cancel(self, request_id):
        self.store.get(request_id)
        cancelled = self.store.cancel(request_id)
        if cancelled:
            logger.info(f"Request {request_id} cancelled by user")
        return cancelled

    def result_image_path(self, request_id):
        """Path of the finished image, or None until the request is completed."""
        req = self.store.get(request_id)
        if req.status != STATUS_COMPLETED or not req.result_image_path:
            return None
        if not os.path.exists(req.result_image_path):
            logger.warning(f"Result file missing for request {request_id}: {req.result_image_path}")
            return None
        return req.result_image_path
