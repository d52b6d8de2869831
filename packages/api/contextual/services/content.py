# This project was developed with assistance from AI tools.
"""Resolve identifiers into rendered context text.

Two resolution paths:

  - ``type-id``  one document, type-checked and access-checked, formatted
  - ``multi``    digest of the most recent public posts/pages

``list_contexts`` pages through the public documents of one allowed type.

The multi path only ever carries document bodies; structural data has its own
answer path and never leaks in here.
"""

import html
import logging
import math
import re
from datetime import UTC, datetime

from ..core.errors import (
    AccessDeniedError,
    InvalidIdentifierError,
    NotFoundError,
    PostTypeNotAllowedError,
    TypeMismatchError,
)
from ..schemas.caller import READ_PRIVATE, Caller
from ..schemas.context import (
    MULTI_IDENTIFIER,
    ContextFormat,
    ContextList,
    ContextSummary,
    Pagination,
    ResolvedContext,
)
from .sources import Document, DocumentSource

logger = logging.getLogger(__name__)

EMPTY_BODY_NOTE = "No content found."
MULTI_SEPARATOR = "\n---\n"
EXCERPT_WORDS = 20

# Types may contain hyphens ("case-study-12"); the id is the trailing number.
_IDENTIFIER_RE = re.compile(r"^([a-z0-9_-]+?)-(\d+)$", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def is_multi(identifier: str) -> bool:
    return (identifier or "").strip().lower() == MULTI_IDENTIFIER


def parse_identifier(identifier: str) -> tuple[str, int]:
    """Split ``type-id`` into its parts.

    Raises:
        InvalidIdentifierError: not of the form ``<type>-<number>``.
    """
    match = _IDENTIFIER_RE.match((identifier or "").strip())
    if not match:
        raise InvalidIdentifierError(
            f"Invalid identifier: {identifier!r}. Expected '<type>-<id>' or 'multi'."
        )
    return match.group(1).lower(), int(match.group(2))


def strip_tags(text: str) -> str:
    """Plain text from rendered HTML, keeping paragraph breaks."""
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    lines = [line.strip() for line in text.splitlines()]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


def _body_for(rendered: str, fmt: ContextFormat) -> str:
    body = rendered.strip() if fmt == ContextFormat.HTML else strip_tags(rendered)
    return body or EMPTY_BODY_NOTE


def format_content(title: str, rendered: str, fmt: ContextFormat) -> str:
    """Format one rendered document.

    markdown: ``## Title\\n\\n<body>\\n``; plain: ``Title\\n\\n<body>``;
    html: ``<h2>Title</h2><div><body></div>``. An empty body becomes
    "No content found.".
    """
    body = _body_for(rendered, fmt)
    if fmt == ContextFormat.HTML:
        return f"<h2>{html.escape(title)}</h2><div>{body}</div>"
    if fmt == ContextFormat.PLAIN:
        return f"{title}\n\n{body}"
    return f"## {title}\n\n{body}\n"


def format_digest_item(document: Document, rendered: str, fmt: ContextFormat) -> str:
    heading = f"{document.title} ({document.identifier})"
    body = _body_for(rendered, fmt)
    if fmt == ContextFormat.HTML:
        return f"<h2>{html.escape(heading)}</h2><div>{body}</div>\n"
    if fmt == ContextFormat.PLAIN:
        return f"{heading}\n{body}\n"
    return f"## {heading}\n{body}\n"


def document_metadata(document: Document) -> dict[str, str | int]:
    return {
        "title": document.title,
        "type": document.type,
        "status": document.status,
        "modified": document.modified,
        "modified_gmt": document.modified_gmt,
    }


def excerpt_for(document: Document, rendered: str) -> str:
    """The host excerpt, else the first words of the rendered body."""
    if document.excerpt.strip():
        return document.excerpt.strip()
    words = strip_tags(rendered).split()
    if len(words) <= EXCERPT_WORDS:
        return " ".join(words)
    return " ".join(words[:EXCERPT_WORDS]) + "..."


def iso_gmt(value: str) -> str:
    """GMT ``YYYY-MM-DD HH:MM:SS`` as ISO 8601 with offset. Unparseable values pass through."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.isoformat()


class ContentAggregator:
    """Resolves identifiers through a ``DocumentSource``."""

    def __init__(
        self,
        documents: DocumentSource,
        multi_limit: int = 5,
        multi_types: tuple[str, ...] | list[str] = ("post", "page"),
    ) -> None:
        self._documents = documents
        self._multi_limit = multi_limit
        self._multi_types = tuple(multi_types)

    @property
    def context_types(self) -> tuple[str, ...]:
        return self._multi_types

    async def list_contexts(
        self, post_type: str = "post", *, limit: int = 10, page: int = 1, search: str = ""
    ) -> ContextList:
        """Page through public documents of one allowed type, newest first.

        Raises:
            PostTypeNotAllowedError: ``post_type`` is not an exposed context type.
        """
        post_type = post_type.strip().lower()
        if post_type not in self._multi_types:
            supported = ", ".join(self._multi_types)
            raise PostTypeNotAllowedError(
                f'Post type "{post_type}" is not allowed. Supported: {supported}'
            )
        documents, total = await self._documents.list_documents(
            post_type, search=search, offset=(page - 1) * limit, limit=limit
        )
        contexts = [
            ContextSummary(
                id=doc.identifier,
                title=doc.title,
                description=excerpt_for(doc, await self._documents.render_body(doc)),
                last_updated=iso_gmt(doc.modified_gmt),
            )
            for doc in documents
        ]
        return ContextList(
            contexts=contexts,
            pagination=Pagination(
                current_page=page,
                total_pages=math.ceil(total / limit),
                total_items=total,
                per_page=limit,
            ),
        )

    async def resolve(
        self, identifier: str, fmt: ContextFormat, caller: Caller | None = None
    ) -> ResolvedContext:
        if is_multi(identifier):
            return await self.aggregate_recent(fmt)
        doc_type, doc_id = parse_identifier(identifier)
        return await self.resolve_document(doc_type, doc_id, fmt, caller)

    async def lookup(self, doc_type: str, doc_id: int, caller: Caller | None = None) -> Document:
        """Fetch a document the caller may read.

        Raises:
            NotFoundError: no document with this id.
            TypeMismatchError: the document exists under a different type.
            AccessDeniedError: the document is not public and the caller may not
                read private content.
        """
        identifier = f"{doc_type}-{doc_id}"
        document = await self._documents.get_document(doc_type, doc_id)
        if document is None:
            raise NotFoundError(f"Context not found: {identifier}")
        if document.type.lower() != doc_type:
            raise TypeMismatchError(
                f"Type mismatch for {identifier}: document is a '{document.type}'."
            )
        if not document.is_public and not (caller and caller.can(READ_PRIVATE)):
            logger.info(
                "Access denied to %s (status=%s) for caller %s",
                identifier,
                document.status,
                caller.identity if caller else "anonymous",
            )
            raise AccessDeniedError(f"You do not have access to {identifier}.")
        return document

    async def render(self, document: Document, fmt: ContextFormat) -> ResolvedContext:
        rendered = await self._documents.render_body(document)
        return ResolvedContext(
            identifier=document.identifier,
            content=format_content(document.title, rendered, fmt),
            metadata={**document_metadata(document), "format": fmt.value},
        )

    async def resolve_document(
        self,
        doc_type: str,
        doc_id: int,
        fmt: ContextFormat,
        caller: Caller | None = None,
    ) -> ResolvedContext:
        document = await self.lookup(doc_type, doc_id, caller)
        return await self.render(document, fmt)

    async def recent_documents(self) -> list[Document]:
        """Most recent public documents, modification time desc then id desc."""
        documents = await self._documents.list_recent(self._multi_types, self._multi_limit)
        documents = [d for d in documents if d.is_public and d.type in self._multi_types]
        documents.sort(key=lambda d: (d.modified_gmt, d.id), reverse=True)
        return documents[: self._multi_limit]

    async def aggregate_recent(self, fmt: ContextFormat) -> ResolvedContext:
        """Digest of recent documents for the ``multi`` identifier."""
        documents = await self.recent_documents()
        items = [
            format_digest_item(doc, await self._documents.render_body(doc), fmt)
            for doc in documents
        ]
        content = MULTI_SEPARATOR.join(items) or EMPTY_BODY_NOTE
        logger.debug("Aggregated %d documents for multi context", len(items))
        return ResolvedContext(
            identifier=MULTI_IDENTIFIER,
            content=content,
            metadata={
                "type": MULTI_IDENTIFIER,
                "format": fmt.value,
                "count": len(items),
                "items": [doc.identifier for doc in documents],
                "signature": ",".join(f"{d.identifier}@{d.modified_gmt}" for d in documents),
            },
        )

    @staticmethod
    def freshness_signature(context: ResolvedContext) -> str:
        """Modification component of cache keys for a resolved context."""
        if context.metadata.get("type") == MULTI_IDENTIFIER:
            return str(context.metadata.get("signature", ""))
        return str(context.metadata.get("modified_gmt", ""))
