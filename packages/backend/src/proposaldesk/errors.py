"""Error taxonomy for the access-control core.

Every core operation either returns its result or raises exactly one of
these. The HTTP layer has a single handler that turns them into
structured responses (see proposaldesk.api.errors), so none of them ever
reaches a client as an unhandled fault.

Only Unavailable is retryable; everything else is terminal for the
request that produced it.
"""


class ProposalDeskError(Exception):
    """Base class for all typed core errors."""

    code: str = "error"
    retryable: bool = False
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ─── Authentication ──────────────────────────────────────


class InvalidCredential(ProposalDeskError):
    """Missing, malformed, expired or wrongly-typed credential."""

    code = "invalid_credential"
    default_message = "Invalid or missing credentials"


class PrincipalNotFound(ProposalDeskError):
    """The token is valid but its subject no longer exists."""

    code = "principal_not_found"
    default_message = "Account no longer exists"


# ─── Authorization ───────────────────────────────────────


class Forbidden(ProposalDeskError):
    code = "forbidden"
    default_message = "Not authorized to perform this operation"


class NotFound(ProposalDeskError):
    code = "not_found"
    default_message = "Resource not found"


# ─── Validation / uniqueness ─────────────────────────────


class ValidationError(ProposalDeskError):
    """Missing field, field over its length bound, or unknown enum value."""

    code = "validation_error"
    default_message = "Invalid input"


class DuplicateTitle(ProposalDeskError):
    code = "duplicate_title"
    default_message = (
        "Project with this title already exists. Please choose a different title."
    )


class DuplicateEmail(ProposalDeskError):
    code = "duplicate_email"
    default_message = "Email already registered"


# ─── Transient ───────────────────────────────────────────


class Unavailable(ProposalDeskError):
    """Storage timed out or the connection failed. Safe to retry."""

    code = "unavailable"
    retryable = True
    default_message = "Storage temporarily unavailable, try again"
