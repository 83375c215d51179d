"""Error taxonomy for the Apple School Manager client.

Reading or parsing the private key is deliberately not represented here:
those failures surface as the underlying OSError / ValueError.
"""


class AppleSchoolManagerError(Exception):
    """Base class for all asmcli errors."""


class AuthenticationError(AppleSchoolManagerError):
    """Raised when the token endpoint answers with anything but 200."""


class APIError(AppleSchoolManagerError):
    """Raised on a non-200/non-404 resource response, or on retry exhaustion."""


class ConfigurationError(AppleSchoolManagerError):
    """Raised when required credentials are missing or unusable."""


class CommandError(AppleSchoolManagerError):
    """Raised when a CLI command is invoked with invalid arguments."""
