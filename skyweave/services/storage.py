import logging
import os
from flask import current_app
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.gif'}


class ImageStorage:
    """Local blob store for uploaded source photos and downloaded results."""

    def __init__(self, app_config=None):
        config = app_config or current_app.config
        data_dir = config.get('DATA_DIR', './data')
        self.upload_dir = config.get('UPLOAD_DIR') or os.path.join(data_dir, 'uploads')
        self.result_dir = config.get('RESULT_DIR') or os.path.join(data_dir, 'results')

    def save_upload(self, request_id, upload):
        """Store a werkzeug FileStorage as <upload_dir>/<request_id><ext>."""
        ext = os.path.splitext(secure_filename(upload.filename or ''))[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            ext = '.jpg'

        os.makedirs(self.upload_dir, exist_ok=True)
        path = os.path.join(self.upload_dir, f'{request_id}{ext}')
        upload.save(path)
        logger.info(f"Saved upload for request {request_id} to {path}")
        return path

    def result_path(self, request_id):
        return os.path.join(self.result_dir, f'{request_id}.jpg')
