class InvalidCredentialsError(Exception):
    """Raised when an email/password pair does not match a stored user."""


class DuplicateEmailError(Exception):
    """Raised when a signup or update would reuse an email that is already taken."""


class InvalidImageError(Exception):
    """Raised when uploaded avatar bytes cannot be decoded as an image."""
