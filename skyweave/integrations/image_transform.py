import logging
import os
import requests
from flask import current_app
from skyweave.integrations.errors import (
    DownloadFailedError,
    PollFailedError,
    ProviderUnavailableError,
    SubmitFailedError,
    UploadFailedError,
)

logger = logging.getLogger(__name__)

JOB_STARTING = 'starting'
JOB_PROCESSING = 'processing'
JOB_SUCCEEDED = 'succeeded'
JOB_FAILED = 'failed'
JOB_CANCELED = 'canceled'

DOWNLOAD_CHUNK_SIZE = 64 * 1024


def first_output_url(output):
    """Job output is either a URL string or a list of them."""
    if isinstance(output, str):
        return output or None
    if isinstance(output, (list, tuple)) and output:
        first = output[0]
        return first if isinstance(first, str) and first else None
    return None


class ImageTransformClient:
    """Replicate-style asynchronous image editing: upload, submit, poll, download."""

    def __init__(self, app_config=None):
        config = app_config or current_app.config
        self.api_token = config.get('REPLICATE_API_TOKEN')
        self.base_url = config.get('REPLICATE_BASE_URL', 'https://api.replicate.com/v1').rstrip('/')
        self.model = config.get('REPLICATE_MODEL', 'black-forest-labs/flux-kontext-pro')

    @property
    def available(self):
        return bool(self.api_token)

    def _headers(self):
        if not self.api_token:
            raise ProviderUnavailableError("REPLICATE_API_TOKEN not set")
        return {'Authorization': f'Bearer {self.api_token}'}

    def upload(self, local_path):
        """Upload a local image to the provider's file store. Returns the file's URL."""
        headers = self._headers()
        try:
            with open(local_path, 'rb') as fh:
                resp = requests.post(
                    f'{self.base_url}/files',
                    headers=headers,
                    files={'content': (os.path.basename(local_path), fh)},
                    timeout=60,
                )
        except OSError as e:
            raise UploadFailedError(f"failed to open file: {e}") from e
        except requests.RequestException as e:
            raise UploadFailedError(f"file upload request failed: {e}") from e

        if resp.status_code not in (200, 201):
            raise UploadFailedError(f"file upload failed: {resp.status_code} - {resp.text[:200]}")

        try:
            url = (resp.json().get('urls') or {}).get('get')
        except ValueError as e:
            raise UploadFailedError(f"failed to parse upload response: {e}") from e
        if not url:
            raise UploadFailedError("upload response did not include a file URL")

        logger.info(f"Uploaded {local_path} -> {url}")
        return url

    def submit(self, prompt, image_url):
        """Create an edit job. Returns the provider's job id."""
        headers = self._headers()
        body = {
            'input': {
                'prompt': prompt,
                'input_image': image_url,
                'output_format': 'jpg',
            }
        }
        try:
            resp = requests.post(
                f'{self.base_url}/models/{self.model}/predictions',
                headers=headers,
                json=body,
                timeout=30,
            )
        except requests.RequestException as e:
            raise SubmitFailedError(f"prediction request failed: {e}") from e

        if resp.status_code not in (200, 201):
            raise SubmitFailedError(f"prediction creation failed: {resp.status_code} - {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise SubmitFailedError(f"failed to parse response: {e}") from e
        if not data.get('id'):
            raise SubmitFailedError("prediction response did not include an id")

        logger.info(f"Prediction created: {data['id']} (status: {data.get('status')})")
        return data['id']

    def poll(self, job_id):
        """Current job state: {id, status, output, error}."""
        headers = self._headers()
        try:
            resp = requests.get(f'{self.base_url}/predictions/{job_id}', headers=headers, timeout=10)
        except requests.RequestException as e:
            raise PollFailedError(f"status check failed: {e}") from e

        if resp.status_code != 200:
            raise PollFailedError(f"status check failed: {resp.status_code} - {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise PollFailedError(f"failed to parse response: {e}") from e

        return {
            'id': data.get('id', job_id),
            'status': data.get('status', ''),
            'output': data.get('output'),
            'error': data.get('error') or None,
        }

    def download(self, url, dest_path):
        """Stream the output at url into dest_path. dest_path only appears once complete."""
        part_path = dest_path + '.part'
        try:
            os.makedirs(os.path.dirname(dest_path) or '.', exist_ok=True)
            with requests.get(url, stream=True, timeout=60) as resp:
                if resp.status_code != 200:
                    raise DownloadFailedError(f"download failed with status: {resp.status_code}")
                with open(part_path, 'wb') as fh:
                    for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
            os.replace(part_path, dest_path)
        except requests.RequestException as e:
            self._discard(part_path)
            raise DownloadFailedError(f"failed to download image: {e}") from e
        except OSError as e:
            self._discard(part_path)
            raise DownloadFailedError(f"failed to save image: {e}") from e

        logger.info(f"Downloaded {url} -> {dest_path}")
        return dest_path

    @staticmethod
    def _discard(path):
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
