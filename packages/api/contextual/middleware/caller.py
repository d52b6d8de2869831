# This project was developed with assistance from AI tools.
"""
Caller identity dependency.

The host authenticates and authorises requests before they reach this
service and forwards the result in two headers:

  X-Caller-Id            stable identity used for throttling (defaults to client IP)
  X-Caller-Capabilities  comma-separated capabilities, e.g. "read_private"
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from ..schemas.caller import Caller

logger = logging.getLogger(__name__)

CALLER_ID_HEADER = "X-Caller-Id"
CALLER_CAPABILITIES_HEADER = "X-Caller-Capabilities"


def _parse_capabilities(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip().lower() for part in raw.split(",") if part.strip())


async def get_caller(request: Request) -> Caller:
    """FastAPI dependency: build the Caller from forwarded headers."""
    identity = request.headers.get(CALLER_ID_HEADER, "").strip()
    if not identity:
        identity = request.client.host if request.client else "anonymous"
    caller = Caller(
        identity=identity,
        capabilities=_parse_capabilities(request.headers.get(CALLER_CAPABILITIES_HEADER)),
    )
    logger.debug("Caller %s with capabilities %s", caller.identity, sorted(caller.capabilities))
    return caller


CurrentCaller = Annotated[Caller, Depends(get_caller)]
