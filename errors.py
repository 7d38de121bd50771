# Error types raised by the HR portal services.
# Handlers in app.py catch PortalError subclasses and flash the message.


class PortalError(Exception):
    """Base class for recoverable portal errors"""
    category = 'error'


class ValidationError(PortalError):
    """Missing, short or duplicate input"""


class NotFoundError(PortalError):
    """Stale id on edit or delete"""


class AuthError(PortalError):
    """Login failure"""


class InvalidCredentials(AuthError):
    def __init__(self, message='Invalid email or password.'):
        super().__init__(message)


class NotVerified(AuthError):
    category = 'warning'

    def __init__(self, message='Please verify your email first.'):
        super().__init__(message)


class StorageCorruption(PortalError):
    """Persisted records blob could not be parsed"""
