# This project was developed with assistance from AI tools.
"""Error taxonomy for context resolution and AI dispatch.

Every error carries the HTTP status it maps to and a ``detail`` that is safe
to show to the caller. Diagnostic context (provider bodies, status codes)
goes to the server log, never into ``detail``.
"""


class ContextualError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class ConfigurationError(ContextualError):
    """Provider, API key or model is missing or unsupported. Raised before any network call."""

    status_code = 400
    code = "configuration_error"


class InvalidIdentifierError(ContextualError):
    """Identifier is neither ``type-id`` nor the ``multi`` sentinel."""

    status_code = 400
    code = "invalid_identifier"


class NotFoundError(ContextualError):
    """No document exists for the requested identifier."""

    status_code = 404
    code = "not_found"


class TypeMismatchError(ContextualError):
    """Identifier type does not match the actual document type."""

    status_code = 400
    code = "type_mismatch"


class PostTypeNotAllowedError(ContextualError):
    """Post type is not in the set of types exposed as contexts."""

    status_code = 400
    code = "post_type_not_allowed"


class AccessDeniedError(ContextualError):
    """Caller may not read the requested document."""

    status_code = 403
    code = "access_denied"


class ThrottledError(ContextualError):
    """Caller identity is currently rate limited by the host."""

    status_code = 429
    code = "throttled"


class SchemaUnavailableError(ContextualError):
    """Schema collaborator failed. Callers degrade to an empty snapshot."""

    status_code = 503
    code = "schema_unavailable"


class ProviderError(ContextualError):
    """Base class for failures talking to an AI provider."""

    status_code = 502
    code = "provider_error"

    def __init__(self, detail: str, *, provider: str = "", status: int | None = None) -> None:
        self.provider = provider
        self.status = status
        super().__init__(detail)


class ProviderTransportError(ProviderError):
    """Network failure, timeout, or non-2xx response from the provider."""


class ProviderResponseError(ProviderError):
    """Provider answered 2xx with a body that does not match its documented shape."""


class ProviderEmptyOutputError(ProviderError):
    """Provider answered successfully but produced no visible text."""
