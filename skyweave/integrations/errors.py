class PipelineError(Exception):
    """Base class for every failure a pipeline stage can persist onto a request."""


class NotFoundError(PipelineError):
    pass


class RequestNotFoundError(NotFoundError):
    def __init__(self, request_id):
        self.request_id = request_id
        super().__init__(f"Request not found: {request_id}")


class OutOfRangeError(PipelineError):
    pass


class NoDataError(PipelineError):
    pass


class ProviderUnavailableError(PipelineError):
    pass


class UploadFailedError(PipelineError):
    pass


class SubmitFailedError(PipelineError):
    pass


class PollFailedError(PipelineError):
    pass


class DownloadFailedError(PipelineError):
    pass


class TransformTimeoutError(PipelineError):
    def __init__(self, attempts):
        self.attempts = attempts
        super().__init__(f"Image processing timed out after {attempts} polling attempts")
