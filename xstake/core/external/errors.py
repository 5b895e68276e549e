"""Errors raised by the simulated external authorities."""


class ExternalAuthorityError(Exception):
    """Base class for failures reported by an external authority."""


class TokenError(ExternalAuthorityError):
    """Underlying token transfer or approval failed."""


class DelegationError(ExternalAuthorityError):
    """Delegation manager rejected a delegate/undelegate instruction."""


class ClaimsError(ExternalAuthorityError):
    """Claims manager rejected a round or a claim."""
