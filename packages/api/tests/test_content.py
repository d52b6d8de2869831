# This project was developed with assistance from AI tools.
"""Tests for identifier parsing, document formatting and the multi digest."""

import pytest
from pydantic import ValidationError

from contextual.core.errors import (
    AccessDeniedError,
    InvalidIdentifierError,
    NotFoundError,
    PostTypeNotAllowedError,
    TypeMismatchError,
)
from contextual.schemas.caller import READ_PRIVATE, Caller
from contextual.schemas.context import ContextFormat, ResolvedContext
from contextual.services.content import (
    EMPTY_BODY_NOTE,
    ContentAggregator,
    excerpt_for,
    format_content,
    iso_gmt,
    parse_identifier,
    strip_tags,
)
from contextual.services.sources import Document, InMemoryDocumentSource, render_embedded_content

# -- Identifiers --


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [
        ("post-12", ("post", 12)),
        ("Page-7", ("page", 7)),
        ("case-study-42", ("case-study", 42)),
        ("  plots-3 ", ("plots", 3)),
    ],
)
def test_parse_identifier(identifier, expected):
    """Should split '<type>-<id>' with the id taken from the trailing number."""
    assert parse_identifier(identifier) == expected


@pytest.mark.parametrize("identifier", ["post", "12", "post-", "post-abc", "post 12", ""])
def test_parse_identifier_rejects_malformed(identifier):
    """Should raise InvalidIdentifierError for anything but '<type>-<number>'."""
    with pytest.raises(InvalidIdentifierError):
        parse_identifier(identifier)


# -- Formatting --


def test_format_content_markdown():
    """Should render a markdown heading followed by the body."""
    assert format_content("Test title", "<p>Body copy</p>", ContextFormat.MARKDOWN) == (
        "## Test title\n\nBody copy\n"
    )


def test_format_content_plain():
    """Should render title and body separated by a blank line."""
    assert format_content("Test title", "<p>Body copy</p>", ContextFormat.PLAIN) == "Test title\n\nBody copy"


def test_format_content_html_escapes_title_only():
    """Should escape the title and keep the rendered HTML body."""
    output = format_content("Fish & Chips", "<p>Body <em>copy</em></p>", ContextFormat.HTML)
    assert output == "<h2>Fish &amp; Chips</h2><div><p>Body <em>copy</em></p></div>"


@pytest.mark.parametrize("fmt", list(ContextFormat))
def test_format_content_empty_body_returns_note(fmt):
    """Should replace an empty rendered body with a short note."""
    output = format_content("Empty Page", "   ", fmt)
    assert "Empty Page" in output
    assert EMPTY_BODY_NOTE in output


def test_format_content_block_markup_keeps_body():
    """Should include rendered block body text, not only the title."""
    rendered = render_embedded_content(
        "<!-- wp:heading --><h2>Only a heading</h2><!-- /wp:heading -->"
        "<!-- wp:paragraph --><p>Rendered paragraph text.</p><!-- /wp:paragraph -->"
    )
    output = format_content("Block post", rendered, ContextFormat.MARKDOWN)
    assert "## Block post" in output
    assert "Rendered paragraph text." in output
    assert "wp:" not in output


def test_strip_tags_keeps_paragraph_breaks():
    """Should turn HTML into text with single blank lines between paragraphs."""
    assert strip_tags("<p>One</p>\n\n\n<p>Two &amp; three</p>") == "One\n\nTwo & three"


def test_render_embedded_content_drops_shortcodes():
    """Should drop shortcode tags and keep the enclosed text."""
    assert render_embedded_content('[caption id="1"]Photo[/caption]') == "Photo"


# -- Single document --


@pytest.mark.asyncio
async def test_resolve_document(documents):
    """Should resolve a public document with freshness metadata."""
    aggregator = ContentAggregator(documents)
    context = await aggregator.resolve("post-11", ContextFormat.MARKDOWN)

    assert context.identifier == "post-11"
    assert context.content == "## Alpha\n\nAlpha body copy.\n"
    assert context.metadata["modified_gmt"] == "2026-01-10 09:00:00"
    assert context.metadata["type"] == "post"


@pytest.mark.asyncio
async def test_resolve_missing_document(documents):
    """Should raise NotFoundError for an unknown id."""
    with pytest.raises(NotFoundError, match="post-999"):
        await ContentAggregator(documents).resolve("post-999", ContextFormat.MARKDOWN)


@pytest.mark.asyncio
async def test_resolve_type_mismatch(documents):
    """Should raise TypeMismatchError when the id belongs to another type."""
    with pytest.raises(TypeMismatchError):
        await ContentAggregator(documents).resolve("page-11", ContextFormat.MARKDOWN)


@pytest.mark.asyncio
async def test_resolve_private_document_denied(documents):
    """Should deny non-public documents to callers without read_private."""
    with pytest.raises(AccessDeniedError):
        await ContentAggregator(documents).resolve("post-13", ContextFormat.MARKDOWN, Caller())


@pytest.mark.asyncio
async def test_resolve_private_document_allowed_with_capability(documents):
    """Should allow non-public documents to callers with read_private."""
    caller = Caller(identity="editor", capabilities=frozenset({READ_PRIVATE}))
    context = await ContentAggregator(documents).resolve("post-13", ContextFormat.PLAIN, caller)
    assert context.content == "Draft\n\nPrivate draft."


# -- Multi digest --


@pytest.mark.asyncio
async def test_multi_contains_rendered_bodies(documents):
    """Should include titles, stable identifiers and rendered body text."""
    context = await ContentAggregator(documents).resolve("multi", ContextFormat.MARKDOWN)

    assert "## Alpha (post-11)" in context.content
    assert "Alpha body copy." in context.content
    assert "## Beta (page-12)" in context.content
    assert "Beta body copy." in context.content
    assert "\n---\n" in context.content
    assert context.identifier == "multi"


@pytest.mark.asyncio
async def test_multi_excludes_private_and_orders_recent_first(documents):
    """Should list public documents newest first and skip drafts."""
    context = await ContentAggregator(documents).aggregate_recent(ContextFormat.MARKDOWN)

    assert context.metadata["items"] == ["page-12", "post-11", "page-14"]
    assert context.metadata["count"] == 3
    assert "Private draft" not in context.content


@pytest.mark.asyncio
async def test_multi_keeps_empty_items(documents):
    """Should keep items with no body and mark them with the note."""
    context = await ContentAggregator(documents).aggregate_recent(ContextFormat.MARKDOWN)
    assert "## Empty (page-14)\nNo content found.\n" in context.content


@pytest.mark.asyncio
async def test_multi_never_carries_schema(documents):
    """Should never include structural schema keys or summaries."""
    content = (await ContentAggregator(documents).aggregate_recent(ContextFormat.PLAIN)).content
    for key in ("acf_field_groups", "post_types", "taxonomies", "generated_at", "\nACF:\n"):
        assert key not in content


@pytest.mark.asyncio
async def test_multi_respects_limit_and_types(documents):
    """Should cap the digest and only include configured types."""
    documents.add(Document(id=20, type="product", title="Widget", content="x", modified_gmt="2026-02-01"))
    aggregator = ContentAggregator(documents, multi_limit=2, multi_types=("post", "page"))
    context = await aggregator.aggregate_recent(ContextFormat.MARKDOWN)
    assert context.metadata["items"] == ["page-12", "post-11"]


@pytest.mark.asyncio
async def test_multi_ties_broken_by_id():
    """Should order documents with equal modification time by id, descending."""
    source = InMemoryDocumentSource(
        [
            Document(id=1, type="post", title="One", content="a", modified_gmt="2026-01-01"),
            Document(id=2, type="post", title="Two", content="b", modified_gmt="2026-01-01"),
        ]
    )
    context = await ContentAggregator(source).aggregate_recent(ContextFormat.MARKDOWN)
    assert context.metadata["items"] == ["post-2", "post-1"]


@pytest.mark.asyncio
async def test_multi_with_no_documents():
    """Should return the note when there is nothing to aggregate."""
    context = await ContentAggregator(InMemoryDocumentSource()).aggregate_recent(ContextFormat.MARKDOWN)
    assert context.content == EMPTY_BODY_NOTE
    assert context.metadata["count"] == 0


def test_resolved_context_rejects_empty_content():
    """Should refuse a context with no text to send."""
    with pytest.raises(ValidationError):
        ResolvedContext(identifier="post-1", content="")


@pytest.mark.asyncio
async def test_multi_is_deterministic(documents):
    """Should build identical output on repeated calls."""
    aggregator = ContentAggregator(documents)
    first = await aggregator.aggregate_recent(ContextFormat.MARKDOWN)
    second = await aggregator.aggregate_recent(ContextFormat.MARKDOWN)
    assert first == second


@pytest.mark.asyncio
async def test_freshness_signature_changes_with_modification(documents):
    """Should change the multi signature when an item is modified."""
    aggregator = ContentAggregator(documents)
    before = ContentAggregator.freshness_signature(await aggregator.aggregate_recent(ContextFormat.MARKDOWN))
    documents.add(
        Document(
            id=11, type="post", title="Alpha", content="new", modified_gmt="2026-01-10 10:00:00"
        )
    )
    after = ContentAggregator.freshness_signature(await aggregator.aggregate_recent(ContextFormat.MARKDOWN))
    assert before != after


# -- Context listing --


@pytest.mark.asyncio
async def test_list_contexts_newest_first(documents):
    """Should list public documents of the type by modification time, with excerpts."""
    listing = await ContentAggregator(documents).list_contexts("page")

    assert [c.id for c in listing.contexts] == ["page-12", "page-14"]
    beta = listing.contexts[0]
    assert beta.title == "Beta"
    assert beta.description == "Beta body copy."
    assert beta.last_updated == "2026-01-11T09:00:00+00:00"
    assert listing.contexts[1].description == ""
    assert listing.pagination.model_dump() == {
        "current_page": 1,
        "total_pages": 1,
        "total_items": 2,
        "per_page": 10,
    }


@pytest.mark.asyncio
async def test_list_contexts_skips_non_public(documents):
    """Should leave drafts out of the listing."""
    listing = await ContentAggregator(documents).list_contexts("post")
    assert [c.id for c in listing.contexts] == ["post-11"]
    assert listing.pagination.total_items == 1


@pytest.mark.asyncio
async def test_list_contexts_pages(documents):
    """Should slice by page and limit and report the page count."""
    aggregator = ContentAggregator(documents)

    second = await aggregator.list_contexts("page", limit=1, page=2)
    beyond = await aggregator.list_contexts("page", limit=1, page=5)

    assert [c.id for c in second.contexts] == ["page-14"]
    assert second.pagination.total_pages == 2
    assert second.pagination.current_page == 2
    assert beyond.contexts == []
    assert beyond.pagination.total_items == 2


@pytest.mark.asyncio
async def test_list_contexts_search(documents):
    """Should filter on title or body text, case-insensitively."""
    aggregator = ContentAggregator(documents)

    by_title = await aggregator.list_contexts("page", search="BETA")
    by_body = await aggregator.list_contexts("post", search="alpha body")

    assert [c.id for c in by_title.contexts] == ["page-12"]
    assert [c.id for c in by_body.contexts] == ["post-11"]


@pytest.mark.asyncio
async def test_list_contexts_rejects_type_outside_allowed(documents):
    """Should refuse post types that are not exposed as contexts."""
    with pytest.raises(PostTypeNotAllowedError, match="Supported: post, page"):
        await ContentAggregator(documents).list_contexts("product")


@pytest.mark.asyncio
async def test_list_contexts_empty_source():
    """Should report zero pages when nothing matches."""
    listing = await ContentAggregator(InMemoryDocumentSource()).list_contexts("post")
    assert listing.contexts == []
    assert listing.pagination.total_pages == 0


def test_excerpt_prefers_host_excerpt():
    doc = Document(id=1, type="post", title="T", content="<p>Body</p>", excerpt=" Short intro. ")
    assert excerpt_for(doc, "<p>Body</p>") == "Short intro."


def test_excerpt_truncates_long_bodies():
    """Should keep the first twenty words of the rendered body."""
    body = "<p>" + " ".join(f"w{i}" for i in range(30)) + "</p>"
    doc = Document(id=1, type="post", title="T", content=body)

    excerpt = excerpt_for(doc, body)

    assert excerpt == " ".join(f"w{i}" for i in range(20)) + "..."


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2026-01-10 09:00:00", "2026-01-10T09:00:00+00:00"),
        ("2026-01-10T09:00:00+02:00", "2026-01-10T09:00:00+02:00"),
        ("", ""),
        ("yesterday", "yesterday"),
    ],
)
def test_iso_gmt(value, expected):
    assert iso_gmt(value) == expected
