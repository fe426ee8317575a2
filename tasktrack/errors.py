"""Business error taxonomy raised by the services and rendered by the
errors blueprint."""


class TaskTrackError(Exception):
    kind = "Error"
    http_status = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"status": "fail", "error": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(TaskTrackError):
    kind = "ValidationError"
    http_status = 400


class Forbidden(TaskTrackError):
    kind = "Forbidden"
    http_status = 403


class NotFound(TaskTrackError):
    kind = "NotFound"
    http_status = 404


class InvalidState(TaskTrackError):
    kind = "InvalidState"
    http_status = 409
