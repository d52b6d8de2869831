# This project was developed with assistance from AI tools.
"""Caller identity forwarded by the host."""

from pydantic import BaseModel, ConfigDict, Field

READ_PRIVATE = "read_private"


class Caller(BaseModel):
    """Already-authorised caller. Injected by the caller dependency into every request."""

    model_config = ConfigDict(frozen=True)

    identity: str = "anonymous"
    capabilities: frozenset[str] = Field(default_factory=frozenset)

    def can(self, capability: str) -> bool:
        return capability in self.capabilities
