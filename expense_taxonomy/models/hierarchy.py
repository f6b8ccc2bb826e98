"""
Taxonomy Data Models

These models describe the controlled expense vocabulary:
1. A single allowed (project, category, sub-category) leaf
2. The fallback labels used when a proposed label is unknown
3. The read-only lookup index built from a finalized row set

DESIGN DECISION: All three are frozen pydantic models.
A lookup index is a snapshot; changing the vocabulary means building
a new one, never patching an existing one.
"""

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_validator

from expense_taxonomy.config import get_settings


DEFAULT_PROJECT = "日常开支"
DEFAULT_CATEGORY = "其他"
DEFAULT_SUB_CATEGORY = "其他"

# Composite key of a triple. Tuples hash structurally, so no separator
# character can ever make two different triples collide.
TripleKey = tuple[str, str, str]
PairKey = tuple[str, str]


class HierarchyRow(BaseModel):
    """One historically-seen or user-approved leaf of the expense taxonomy."""

    model_config = ConfigDict(frozen=True)

    project: str
    category: str
    sub_category: str

    @property
    def key(self) -> TripleKey:
        return (self.project, self.category, self.sub_category)

    @property
    def pair_key(self) -> PairKey:
        return (self.project, self.category)

    def to_dict(self) -> dict[str, str]:
        return {
            "project": self.project,
            "category": self.category,
            "sub_category": self.sub_category,
        }

    def __str__(self) -> str:
        return f"{self.project}>{self.category}>{self.sub_category}"


class HierarchyDefaults(BaseModel):
    """
    Fallback labels, one per level.

    Passed explicitly to the normalizer, the default-guarantee pass and
    the coercion resolver so callers can swap them without global state.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    project: str = Field(default=DEFAULT_PROJECT, min_length=1)
    category: str = Field(default=DEFAULT_CATEGORY, min_length=1)
    sub_category: str = Field(default=DEFAULT_SUB_CATEGORY, min_length=1)

    @property
    def row(self) -> HierarchyRow:
        return HierarchyRow(
            project=self.project,
            category=self.category,
            sub_category=self.sub_category,
        )

    @classmethod
    def from_settings(cls) -> "HierarchyDefaults":
        """Build defaults from the configured taxonomy settings."""
        taxonomy = get_settings().taxonomy
        return cls(
            project=taxonomy.default_project,
            category=taxonomy.default_category,
            sub_category=taxonomy.default_sub_category,
        )


STANDARD_DEFAULTS = HierarchyDefaults()
DEFAULT_HIERARCHY_ROW = STANDARD_DEFAULTS.row


class HierarchyLookup(BaseModel):
    """
    Read-only index over a finalized row set.

    - allowed_triples: every exact (project, category, sub_category) key
    - projects: project -> categories seen under it
    - categories: (project, category) -> sub-categories seen under it

    The three structures are derived from the same rows in one pass
    and are therefore always mutually consistent. Both maps are
    read-only views, so a shared snapshot cannot be patched in place.
    """

    model_config = ConfigDict(frozen=True)

    allowed_triples: frozenset[TripleKey] = Field(default_factory=frozenset)
    projects: Mapping[str, frozenset[str]] = Field(
        default_factory=lambda: MappingProxyType({})
    )
    categories: Mapping[PairKey, frozenset[str]] = Field(
        default_factory=lambda: MappingProxyType({})
    )
    defaults: HierarchyDefaults = Field(default=STANDARD_DEFAULTS)

    @field_validator("projects", "categories", mode="after")
    @classmethod
    def freeze_map(cls, v: Mapping) -> Mapping:
        return MappingProxyType({key: frozenset(value) for key, value in v.items()})

    @property
    def size(self) -> int:
        return len(self.allowed_triples)

    def has_default(self) -> bool:
        return self.defaults.row.key in self.allowed_triples

    def project_names(self) -> list[str]:
        """Projects in first-seen order, for UI pickers."""
        return list(self.projects)

    def categories_for(self, project: str) -> frozenset[str]:
        return self.projects.get(project, frozenset())

    def sub_categories_for(self, project: str, category: str) -> frozenset[str]:
        return self.categories.get((project, category), frozenset())
