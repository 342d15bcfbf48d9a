class RegistrarError(Exception):
    """Base error rendered as a JSON response by the app error handler."""

    status_code = 500
    code = 'internal'
    default_message = 'Internal server error'

    def __init__(self, message=None, **details):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self):
        payload = {
            'success': False,
            'error': self.message,
            'code': self.code
        }
        payload.update(self.details)
        return payload


class Unauthorized(RegistrarError):
    status_code = 403
    code = 'unauthorized'
    default_message = 'Not authorized'


class Forbidden(RegistrarError):
    status_code = 403
    code = 'forbidden'
    default_message = 'Forbidden'


class NotFound(RegistrarError):
    status_code = 404
    code = 'not_found'
    default_message = 'Not found'


class InvalidArgument(RegistrarError):
    status_code = 400
    code = 'invalid_argument'
    default_message = 'Invalid argument'


class Conflict(RegistrarError):
    status_code = 409
    code = 'conflict'
    default_message = 'The record was modified by another request, please retry'


class Internal(RegistrarError):
    pass
