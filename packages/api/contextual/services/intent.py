# This project was developed with assistance from AI tools.
"""Structural-question intent classification.

Pure functions over a prompt and a ``SchemaSnapshot``. Decides whether a
prompt asks about site structure and, if so, which answer to render:

  - acf_by_post_type       "ACF for plots", "plots ACF", "acf assigned to plot cpt"
  - unknown_post_type      a post-type-like word was named but is not registered
  - generic_schema_overview structure question without a specific type
  - not_schema_related     everything else (handled as a content question)
"""

import enum
import re
from dataclasses import dataclass

from ..schemas.schema import SchemaSnapshot


class IntentKind(str, enum.Enum):
    ACF_BY_POST_TYPE = "acf_by_post_type"
    GENERIC_SCHEMA_OVERVIEW = "generic_schema_overview"
    UNKNOWN_POST_TYPE = "unknown_post_type"
    NOT_SCHEMA_RELATED = "not_schema_related"


@dataclass(frozen=True)
class Intent:
    """Classified purpose of a prompt.

    ``slug`` is the registered post type for ACF_BY_POST_TYPE and the
    unresolved word for UNKNOWN_POST_TYPE; None otherwise.
    """

    kind: IntentKind
    slug: str | None = None
    include_blocks: bool = False
    acf_requested: bool = False

    @property
    def is_schema(self) -> bool:
        return self.kind != IntentKind.NOT_SCHEMA_RELATED


STRUCTURE_KEYWORDS = (
    "cpt",
    "cpts",
    "post type",
    "post types",
    "taxonomy",
    "taxonomies",
    "acf",
    "field group",
    "fields",
    "schema",
)
ACF_KEYWORDS = ("acf", "field group", "field groups", "fields", "relationship fields")
BLOCK_KEYWORDS = (
    "block",
    "blocks",
    "include block",
    "include blocks",
    "and include",
    "with blocks",
)

# Words that can sit between "for"/"assigned to" and a slug, that follow
# "acf"/"fields" without naming a type ("What are the ACF fields?"), or that
# lead into "acf" as a verb, quantifier or qualifier ("List ACF", "custom ACF").
STOPWORDS = frozenset(
    {
        "the", "a", "an", "to", "for", "of", "in", "on", "at", "by", "with",
        "acf", "field", "fields", "group", "groups", "cpt", "cpts", "post", "type", "types",
        "block", "blocks", "is", "are", "does", "do", "exist", "exists", "this", "that",
        "these", "there", "all", "my", "our", "site", "and", "or", "available",
        "each", "every", "any", "some", "custom", "which", "what", "registered",
        "existing", "current", "other", "related", "assigned", "defined", "used",
        "list", "show", "get", "give", "display", "find", "describe", "explain",
        "tell", "summarise", "summarize", "me", "us", "please", "can", "you",
        "have", "has", "use", "uses",
    }
)
_PREPOSITION_STOPWORDS = ("the", "a", "an", "to", "for", "of", "in", "on", "at", "by", "with")

_STOP_RE = "(?:" + "|".join(rf"{re.escape(w)}\s+" for w in _PREPOSITION_STOPWORDS) + ")*"
_ACF_TERM = r"(?:acf|field\s+groups?|fields)"

# A candidate directly followed by plural "post types"/"cpts" is a qualifier
# ("for custom post types"), not a slug.
_CANDIDATE = r"([a-z0-9_-]+)\b(?!\s+(?:post\s+types|cpts)\b)"

_CANDIDATE_PATTERNS = (
    re.compile(rf"\b(?:for|assigned\s+to)\s+{_STOP_RE}(?:post\s+type\s+)?{_CANDIDATE}"),
    re.compile(rf"\b{_ACF_TERM}\s+of\s+{_STOP_RE}(?:post\s+type\s+)?{_CANDIDATE}"),
    re.compile(rf"\b{_ACF_TERM}\s+{_CANDIDATE}"),
    # "<slug> ACF"; "<word> fields" usually names a field kind ("image fields").
    re.compile(r"\b([a-z0-9_-]+)\s+(?:cpt\s+|post\s+type\s+)?acf\b"),
)


def _contains_any(prompt: str, keywords: tuple[str, ...]) -> bool:
    if not prompt or not prompt.strip():
        return False
    lower = prompt.lower()
    return any(keyword in lower for keyword in keywords)


def is_structure_question(prompt: str) -> bool:
    """True when the prompt mentions CPTs, taxonomies, ACF or the schema."""
    return _contains_any(prompt, STRUCTURE_KEYWORDS)


def acf_requested(prompt: str) -> bool:
    return _contains_any(prompt, ACF_KEYWORDS)


def blocks_requested(prompt: str) -> bool:
    """Independent signal: the user also wants block-bound field groups."""
    return _contains_any(prompt, BLOCK_KEYWORDS)


def _slug_variants(slug: str) -> list[str]:
    # Exact slug first, then singular/plural folding.
    alt = slug[:-1] if slug.endswith("s") else slug + "s"
    return [slug, alt] if alt else [slug]


def _variant_patterns(variant: str) -> list[re.Pattern[str]]:
    v = re.escape(variant)
    after = rf"{_STOP_RE}(?:post\s+type\s+)?{v}\b(?!\s+types?\b)"
    return [
        re.compile(rf"\b{_ACF_TERM}\s+(?:assigned\s+to|for|of)\s+{after}"),
        re.compile(rf"\bfor\s+{after}"),
        re.compile(rf"\bassigned\s+to\s+{after}"),
        re.compile(rf"\b{v}\s+(?:cpt\s+|post\s+type\s+)?{_ACF_TERM}\b"),
        re.compile(rf"\b{_ACF_TERM}\s+{v}\b"),
    ]


def extract_requested_post_type(prompt: str, slugs: list[str]) -> str | None:
    """Return the registered slug the prompt asks about, or None.

    Slugs are tried in the order given; matching is case-insensitive and folds
    singular/plural ("plot" resolves to "plots").
    """
    if not prompt or not prompt.strip() or not slugs:
        return None
    lower = prompt.strip().lower()
    for slug in slugs:
        if not slug:
            continue
        for variant in _slug_variants(slug.lower()):
            if any(p.search(lower) for p in _variant_patterns(variant)):
                return slug
    return None


def extract_candidate_post_type(prompt: str) -> str | None:
    """Return a post-type-like word from the prompt even if it is not registered."""
    if not prompt or not prompt.strip():
        return None
    lower = prompt.strip().lower()
    for pattern in _CANDIDATE_PATTERNS:
        for match in pattern.finditer(lower):
            candidate = match.group(1)
            if candidate not in STOPWORDS:
                return candidate
    return None


def classify_intent(prompt: str, snapshot: SchemaSnapshot) -> Intent:
    """Classify a prompt against a schema snapshot. Deterministic and side-effect free."""
    if not is_structure_question(prompt):
        return Intent(kind=IntentKind.NOT_SCHEMA_RELATED)

    wants_acf = acf_requested(prompt)
    wants_blocks = blocks_requested(prompt)

    if wants_acf:
        resolved = extract_requested_post_type(prompt, snapshot.post_type_slugs)
        if resolved is not None:
            return Intent(
                kind=IntentKind.ACF_BY_POST_TYPE,
                slug=resolved,
                include_blocks=wants_blocks,
                acf_requested=True,
            )
        candidate = extract_candidate_post_type(prompt)
        if candidate:
            return Intent(
                kind=IntentKind.UNKNOWN_POST_TYPE,
                slug=candidate,
                include_blocks=wants_blocks,
                acf_requested=True,
            )

    return Intent(
        kind=IntentKind.GENERIC_SCHEMA_OVERVIEW,
        include_blocks=wants_blocks,
        acf_requested=wants_acf,
    )
