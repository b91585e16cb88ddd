"""Service-layer exceptions.

Services raise these; routers translate them to HTTPException using the
status_code carried on each class.
"""


class AgencyHubError(Exception):
    """Base exception for service errors."""

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AgencyHubError):
    """Input failed a domain rule."""

    status_code = 422
    default_message = "Invalid input"


class PermissionDeniedError(AgencyHubError):
    """Viewer is not allowed to perform the action."""

    status_code = 403
    default_message = "Not authorized"


class NotFoundError(AgencyHubError):
    """Entity missing, soft-deleted, or outside the viewer's scope."""

    status_code = 404
    default_message = "Not found"


class InvitationInvalidError(NotFoundError):
    """No invitation matches the token."""

    default_message = "Invitation not found or invalid"


class InvitationExpiredError(AgencyHubError):
    """Invitation exists but its expiry has passed."""

    status_code = 410
    default_message = "Invitation has expired"


class InvitationAlreadyAcceptedError(AgencyHubError):
    """Invitation token was already consumed."""

    status_code = 409
    default_message = "Invitation has already been accepted"


class PaymentProviderError(AgencyHubError):
    """Payment processor call failed. Not retried automatically."""

    status_code = 502
    default_message = "Payment provider unavailable"
