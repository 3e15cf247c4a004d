"""Error taxonomy for the analysis, interview and agent flows.

Every error carries a user-facing ``message`` and the HTTP status the API
layer answers with.
"""


class CareerPilotError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ExtractionError(CareerPilotError):
    """The uploaded bytes could not be turned into text."""
    status_code = 422


class ResumeUnreadable(CareerPilotError):
    status_code = 422


class MalformedModelOutput(CareerPilotError):
    status_code = 502


class ModelCallFailed(CareerPilotError):
    status_code = 502


class JobNotFound(CareerPilotError):
    status_code = 404


class EvaluationFailed(CareerPilotError):
    status_code = 502


class UserExists(CareerPilotError):
    status_code = 409
