class CollaboratorError(Exception):
    """A downstream collaborator refused a request it understood."""


class ServiceRejectedError(CollaboratorError):
    """An edge function answered the request with a client error."""

    def __init__(self, service: str, status_code: int, detail: str = ""):
        self.service = service
        self.status_code = status_code
        self.detail = detail
        message = f"{service} rejected request ({status_code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class NotificationRejectedError(CollaboratorError):
    """The notification could not be accepted for delivery."""
