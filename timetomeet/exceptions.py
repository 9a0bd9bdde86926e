class ServiceError(Exception):
    """Base class for errors raised by the service layer. Routers translate these into `ErrorDetail` responses."""
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidRequest(ServiceError):
    status_code = 400


class PermissionDenied(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class FeatureDisabled(Conflict):
    pass


class AuthenticationFailed(ServiceError):
    status_code = 401
