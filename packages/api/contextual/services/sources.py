# This project was developed with assistance from AI tools.
"""Read interfaces onto the host: documents, schema snapshot, throttling.

The host owns storage, rendering and rate-limit bookkeeping; this service only
reads through these ports. File-backed implementations (YAML) are provided for
local runs and tests.
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import yaml
from pydantic import ValidationError

from ..core.errors import SchemaUnavailableError
from ..schemas.schema import SchemaSnapshot
from .cache import CachePort

logger = logging.getLogger(__name__)

PUBLIC_STATUS = "publish"

# Block editor delimiters: <!-- wp:paragraph --> ... <!-- /wp:paragraph -->
_BLOCK_DELIMITER_RE = re.compile(r"<!--\s*/?wp:[^>]*-->")
# Shortcodes with no registered renderer are dropped, keeping enclosed text.
_SHORTCODE_RE = re.compile(r"\[/?[a-z][\w-]*(?:\s[^\]]*)?\]", re.IGNORECASE)


@dataclass(frozen=True)
class Document:
    """A content item as exposed by the host."""

    id: int
    type: str
    title: str
    content: str
    status: str = PUBLIC_STATUS
    modified: str = ""
    modified_gmt: str = ""
    excerpt: str = ""

    @property
    def identifier(self) -> str:
        return f"{self.type}-{self.id}"

    @property
    def is_public(self) -> bool:
        return self.status == PUBLIC_STATUS


class DocumentSource(Protocol):
    async def get_document(self, doc_type: str, doc_id: int) -> Document | None: ...

    async def render_body(self, document: Document) -> str: ...

    async def list_recent(self, types: Iterable[str], limit: int) -> list[Document]: ...

    async def list_documents(
        self, doc_type: str, *, search: str = "", offset: int = 0, limit: int = 10
    ) -> tuple[list[Document], int]: ...


class SchemaSource(Protocol):
    async def get_schema_snapshot(self) -> SchemaSnapshot: ...


# Host-provided "is this identity currently throttled" check.
ThrottleCheck = Callable[[str], bool]


def never_throttled(identity: str) -> bool:
    return False


def render_embedded_content(raw: str) -> str:
    """Default rendering pipeline: drop block delimiters and bare shortcodes."""
    text = _BLOCK_DELIMITER_RE.sub("", raw or "")
    text = _SHORTCODE_RE.sub("", text)
    return text.strip()


class InMemoryDocumentSource:
    """Document source over a fixed list. ``renderer`` stands in for the host pipeline."""

    def __init__(
        self,
        documents: Iterable[Document] = (),
        renderer: Callable[[str], str] | None = None,
    ) -> None:
        self._documents: dict[int, Document] = {}
        self._renderer = renderer or render_embedded_content
        for doc in documents:
            self.add(doc)

    def add(self, document: Document) -> None:
        self._documents[document.id] = document

    async def get_document(self, doc_type: str, doc_id: int) -> Document | None:
        # Ids are unique across types; the caller compares the type.
        return self._documents.get(doc_id)

    async def render_body(self, document: Document) -> str:
        return self._renderer(document.content)

    async def list_recent(self, types: Iterable[str], limit: int) -> list[Document]:
        wanted = set(types)
        docs = [d for d in self._documents.values() if d.type in wanted and d.is_public]
        docs.sort(key=lambda d: (d.modified_gmt, d.id), reverse=True)
        return docs[:limit]

    async def list_documents(
        self, doc_type: str, *, search: str = "", offset: int = 0, limit: int = 10
    ) -> tuple[list[Document], int]:
        """One page of public documents of a type, newest first, plus the total match count."""
        needle = search.strip().lower()
        docs = [
            d
            for d in self._documents.values()
            if d.type == doc_type
            and d.is_public
            and (not needle or needle in d.title.lower() or needle in d.content.lower())
        ]
        docs.sort(key=lambda d: (d.modified_gmt, d.id), reverse=True)
        return docs[offset : offset + limit], len(docs)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "InMemoryDocumentSource":
        """Load ``documents: [{id, type, title, content, ...}]`` from a YAML file."""
        with open(path) as f:
            raw: dict[str, Any] = yaml.safe_load(f) or {}
        documents = [Document(**item) for item in raw.get("documents") or []]
        logger.info("Loaded %d documents from %s", len(documents), path)
        return cls(documents)


class StaticSchemaSource:
    """Schema source over a fixed snapshot or a YAML export on disk."""

    def __init__(
        self, snapshot: SchemaSnapshot | None = None, path: str | Path | None = None
    ) -> None:
        self._snapshot = snapshot
        self._path = Path(path) if path else None

    async def get_schema_snapshot(self) -> SchemaSnapshot:
        if self._snapshot is not None:
            return self._snapshot
        if self._path is None:
            return SchemaSnapshot.empty()
        try:
            with open(self._path) as f:
                raw = yaml.safe_load(f) or {}
            return SchemaSnapshot.model_validate(raw)
        except (OSError, yaml.YAMLError, ValidationError) as exc:
            logger.error("Failed to read schema export %s: %s", self._path, exc)
            raise SchemaUnavailableError("Site schema could not be loaded.") from exc


SCHEMA_CACHE_KEY = "contextual_schema"


class CachedSchemaSource:
    """Caches another schema source's snapshot for ``ttl`` seconds."""

    def __init__(self, inner: SchemaSource, cache: CachePort, ttl: int = 300) -> None:
        self._inner = inner
        self._cache = cache
        self._ttl = ttl

    async def get_schema_snapshot(self) -> SchemaSnapshot:
        cached = self._cache.get(SCHEMA_CACHE_KEY)
        if cached is not None:
            return cached
        snapshot = await self._inner.get_schema_snapshot()
        self._cache.set(SCHEMA_CACHE_KEY, snapshot, self._ttl)
        return snapshot
