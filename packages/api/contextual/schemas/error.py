# This project was developed with assistance from AI tools.
"""Problem Details (RFC 7807) body returned for every failed request."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """RFC 7807 body with a machine-readable ``code`` extension member.

    ``detail`` is always the caller-safe text of the raised error; provider
    diagnostics stay in the server log.
    """

    type: str = Field(default="about:blank", description="Problem type URI.")
    title: str = Field(description="HTTP reason phrase for ``status``.")
    status: int = Field(description="HTTP status code.")
    code: str = Field(
        default="",
        description="Stable error code, e.g. 'type_mismatch' or 'configuration_error'.",
    )
    detail: str = Field(default="", description="Caller-safe explanation.")
    request_id: str = Field(default="", description="Correlation ID echoed from X-Request-ID.")
