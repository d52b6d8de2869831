# This project was developed with assistance from AI tools.
"""Deterministic markdown answers for structural questions.

Output depends only on the ``Intent`` and the ``SchemaSnapshot``: groups and
fields keep snapshot order and the only timestamp is the snapshot's own
``generated_at``. Every answer ends with exactly one footer line.
"""

from ..schemas.schema import FieldGroup, SchemaSnapshot
from .intent import Intent, IntentKind

FOOTER_PREFIX = "Source: schema (generated at "
TOP_GROUPS_LIMIT = 5


def build_schema_footer(snapshot: SchemaSnapshot) -> str:
    return f"{FOOTER_PREFIX}{snapshot.generated_at or '-'})."


def post_types_from_location(group: FieldGroup) -> list[str]:
    """Post type slugs bound by ``post_type == <slug>`` rules, first occurrence order."""
    slugs: list[str] = []
    for rule in group.rules:
        if rule.param != "post_type" or rule.operator != "==":
            continue
        if rule.value and rule.value not in slugs:
            slugs.append(rule.value)
    return slugs


def is_block_group(group: FieldGroup) -> bool:
    """A group with any ``block`` location rule. Wins over its post_type rules."""
    return any(rule.param == "block" for rule in group.rules)


def _slug_stems(slug: str) -> set[str]:
    slug = slug.lower()
    stems = {slug}
    if slug.endswith("s") and len(slug) > 1:
        stems.add(slug[:-1])
    return stems


def block_group_matches(group: FieldGroup, slug: str) -> bool:
    """True when a block group's block name or "Block: ..." title refers to ``slug``."""
    stems = _slug_stems(slug)
    title = group.title.lower()
    for rule in group.rules:
        if rule.param != "block":
            continue
        value = (rule.value or "").lower()
        if any(stem in value for stem in stems):
            return True
    return title.startswith("block:") and any(stem in title for stem in stems)


def acf_groups_for_post_type(
    groups: list[FieldGroup], slug: str, include_blocks: bool = False
) -> list[FieldGroup]:
    """Field groups that apply to ``slug``, in snapshot order.

    Block groups are dropped unless ``include_blocks``; when included they must
    either bind to ``slug`` or name it in their block/title.
    """
    matched: list[FieldGroup] = []
    for group in groups:
        bound = slug in post_types_from_location(group)
        if is_block_group(group):
            if include_blocks and (bound or block_group_matches(group, slug)):
                matched.append(group)
            continue
        if bound:
            matched.append(group)
    return matched


def _format_field(label: str, name: str, field_type: str) -> str:
    line = f"- {label or name or '(unnamed)'}"
    if name and name != label:
        line += f" ({name})"
    if field_type:
        line += f" [{field_type}]"
    return line


def _render_acf_by_post_type(intent: Intent, snapshot: SchemaSnapshot) -> list[str]:
    slug = intent.slug or ""
    groups = acf_groups_for_post_type(snapshot.acf_field_groups, slug, intent.include_blocks)

    lines = [f'ACF Field Groups for "{slug}"', ""]
    if not groups:
        lines.append("No ACF field groups found for this post type.")
    for group in groups:
        lines.append(f"### {group.title or '(unnamed)'}")
        if group.key:
            lines.append(f"Group key: {group.key}")
        lines.append(f"Field count: {len(group.fields)}")
        lines.append("")
        if group.fields:
            lines.append("Fields:")
            lines.extend(_format_field(f.label, f.name, f.type) for f in group.fields)
        else:
            lines.append("(No fields)")
        lines.append("")
    if not intent.include_blocks:
        lines.append(f'Block groups excluded. Ask for "ACF blocks for {slug}" to include them.')
    return lines


def _render_unknown_post_type(intent: Intent, snapshot: SchemaSnapshot) -> list[str]:
    available = ", ".join(snapshot.post_type_slugs) or "none"
    return [
        f'Post type "{intent.slug or ""}" could not be found.',
        "",
        f"Available post types: {available}",
    ]


def _render_overview(intent: Intent, snapshot: SchemaSnapshot) -> list[str]:
    lines = ["Custom Post Types", ""]
    if snapshot.post_types:
        for pt in snapshot.post_types:
            lines.append(f"- {pt.slug} ({pt.label})" if pt.label else f"- {pt.slug}")
    else:
        lines.append("- None.")

    lines.extend(["", "Custom Taxonomies", ""])
    if snapshot.taxonomies:
        for tax in snapshot.taxonomies:
            line = f"- {tax.slug} ({tax.label})" if tax.label else f"- {tax.slug}"
            if tax.object_types:
                line += f" [{', '.join(tax.object_types)}]"
            lines.append(line)
    else:
        lines.append("- None.")

    if intent.acf_requested and snapshot.acf_field_groups:
        # sorted() is stable: ties keep snapshot order.
        top = sorted(snapshot.acf_field_groups, key=lambda g: len(g.fields), reverse=True)
        lines.extend(["", f"ACF Field Groups (top {TOP_GROUPS_LIMIT} by field count)", ""])
        for group in top[:TOP_GROUPS_LIMIT]:
            lines.append(f"- {group.title or '(unnamed)'}: {len(group.fields)} field(s)")
        lines.extend(["", 'Name a post type to see its groups, e.g. "ACF for <post type>".'])
    return lines


_RENDERERS = {
    IntentKind.ACF_BY_POST_TYPE: _render_acf_by_post_type,
    IntentKind.UNKNOWN_POST_TYPE: _render_unknown_post_type,
    IntentKind.GENERIC_SCHEMA_OVERVIEW: _render_overview,
}


def build_schema_answer(intent: Intent, snapshot: SchemaSnapshot) -> str:
    """Render the answer body for a schema intent followed by the single footer line.

    Raises:
        ValueError: intent is NOT_SCHEMA_RELATED.
    """
    renderer = _RENDERERS.get(intent.kind)
    if renderer is None:
        raise ValueError(f"No schema answer for intent {intent.kind.value}")
    body = "\n".join(renderer(intent, snapshot)).rstrip()
    return f"{body}\n\n{build_schema_footer(snapshot)}"
