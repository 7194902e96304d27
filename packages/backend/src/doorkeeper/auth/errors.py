"""Error kinds raised by the auth core.

Learn: Three separate failures, three separate types:
- ValidationError: the input can't become an identity (user-fixable)
- AuthenticationFailure: bad credentials (deliberately vague)
- AuthorizationFailure: not logged in

Keeping them apart means a caller can never mistake "nobody is logged in"
for "the password was wrong", and the HTTP layer maps each to its own
status code in one place.
"""

import enum


class DoorkeeperError(Exception):
    """Base class for all auth core errors."""


class ValidationCode(str, enum.Enum):
    MISSING_IDENTIFIER = "missing_identifier"
    IDENTIFIER_TOO_LONG = "identifier_too_long"
    MISSING_PASSWORD = "missing_password"
    PASSWORD_MISMATCH = "password_mismatch"
    DUPLICATE_IDENTIFIER = "duplicate_identifier"


MESSAGES = {
    ValidationCode.MISSING_IDENTIFIER: "Email can't be blank",
    ValidationCode.IDENTIFIER_TOO_LONG: "Email is too long (maximum is 255 characters)",
    ValidationCode.MISSING_PASSWORD: "Password can't be blank",
    ValidationCode.PASSWORD_MISMATCH: "Password confirmation doesn't match Password",
    ValidationCode.DUPLICATE_IDENTIFIER: "Email has already been taken",
}


class ValidationError(DoorkeeperError):
    """Raised when an identity fails validation. Nothing was written."""

    def __init__(self, *codes: ValidationCode):
        if not codes:
            raise ValueError("ValidationError needs at least one code")
        self.codes = tuple(codes)
        super().__init__("; ".join(self.messages))

    @property
    def code(self) -> ValidationCode:
        return self.codes[0]

    @property
    def messages(self) -> list[str]:
        return [MESSAGES[c] for c in self.codes]


class AuthenticationFailure(DoorkeeperError):
    """Raised when credentials don't check out.

    Same type and message whether the identifier is unknown or the
    password is wrong.
    """

    def __init__(self):
        super().__init__("Invalid email or password")


class AuthorizationFailure(DoorkeeperError):
    """Raised when an operation needs a logged-in identity and there is none."""

    def __init__(self):
        super().__init__("You must be logged in")


class IdentityNotFound(DoorkeeperError):
    """Raised when an operation targets an identity id that doesn't exist."""
