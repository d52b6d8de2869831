# This project was developed with assistance from AI tools.
"""Structural schema snapshot: post types, taxonomies and ACF field groups.

Mirrors the host's schema export. Unknown keys are kept (``extra="allow"``)
so a richer export never fails validation.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class PostTypeInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    slug: str
    label: str = ""


class TaxonomyInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    slug: str
    label: str = ""
    object_types: list[str] = Field(default_factory=list)


class FieldInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    label: str = ""
    name: str = ""
    type: str = ""
    key: str = ""


class LocationRule(BaseModel):
    """One ACF location rule, e.g. ``post_type == plots`` or ``block == acf/hero``."""

    model_config = ConfigDict(extra="allow")

    param: str = ""
    operator: str = "=="
    value: str = ""


class FieldGroup(BaseModel):
    """ACF field group. ``location`` is OR-of-AND: a list of rule groups."""

    model_config = ConfigDict(extra="allow")

    title: str = ""
    key: str = ""
    location: list[list[LocationRule]] = Field(default_factory=list)
    fields: list[FieldInfo] = Field(default_factory=list)

    @property
    def rules(self) -> list[LocationRule]:
        return [rule for rule_group in self.location for rule in rule_group]


class SchemaSnapshot(BaseModel):
    """Point-in-time read of the site's structure. Read-only input."""

    model_config = ConfigDict(frozen=True, extra="allow")

    post_types: list[PostTypeInfo] = Field(default_factory=list)
    taxonomies: list[TaxonomyInfo] = Field(default_factory=list)
    acf_field_groups: list[FieldGroup] = Field(default_factory=list)
    generated_at: str = ""

    @property
    def post_type_slugs(self) -> list[str]:
        return [pt.slug for pt in self.post_types if pt.slug]

    @classmethod
    def empty(cls) -> "SchemaSnapshot":
        """Valid snapshot with no structure, stamped with the current time."""
        return cls(generated_at=datetime.now(UTC).isoformat(timespec="seconds"))
