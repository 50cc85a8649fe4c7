# fairplay/taxonomy.py
"""
Dark pattern category registry.

The taxonomy is loaded once from dark-pattern-categories.json and is immutable
afterwards. Lookups are exact; fuzzy resolution of model-supplied type names
lives in the response decoder.

File format:
    {"categories": [{"id": ..., "name": ..., "scanDescription": ..., "fixInstructions": ...}]}
"""

import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fairplay.errors import ConfigMissing

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES_FILE = "dark-pattern-categories.json"


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Category:
    """One dark pattern category and the instructions used to fix it."""

    id: str
    name: str
    scan_description: str
    fix_instructions: str


class _CategorySchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    scan_description: str = Field(alias="scanDescription")
    fix_instructions: str = Field(alias="fixInstructions")


class _CategoryConfigSchema(BaseModel):
    categories: list[_CategorySchema] = Field(min_length=1)


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------


class CategoryRegistry:
    """Immutable lookup of categories by id and by exact name, in file order."""

    def __init__(self, categories: list[Category]):
        by_id: dict[str, Category] = {}
        by_name: dict[str, Category] = {}
        for category in categories:
            if category.id in by_id:
                raise ConfigMissing(f"Duplicate category id: {category.id}")
            if category.name in by_name:
                raise ConfigMissing(f"Duplicate category name: {category.name}")
            by_id[category.id] = category
            by_name[category.name] = category

        self._categories = tuple(categories)
        self._by_id = MappingProxyType(by_id)
        self._by_name = MappingProxyType(by_name)

    def by_id(self, category_id: str) -> Category | None:
        return self._by_id.get(category_id)

    def by_name(self, name: str) -> Category | None:
        return self._by_name.get(name)

    @property
    def names(self) -> list[str]:
        return [c.name for c in self._categories]

    @property
    def ids(self) -> list[str]:
        return [c.id for c in self._categories]

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id

    def __repr__(self) -> str:
        return f"CategoryRegistry({', '.join(self.ids)})"


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------


def load_registry(source: str | bytes | Path | Mapping[str, Any]) -> CategoryRegistry:
    """
    Build a registry from a taxonomy file, raw JSON text, or a parsed mapping.

    Strings that look like a JSON document are parsed directly; any other string
    is treated as a path.

    Raises:
        ConfigMissing: The source is missing, unreadable, or fails validation.
    """
    if isinstance(source, Mapping):
        data = source
    else:
        text = _read_source(source)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigMissing(f"Taxonomy is not valid JSON: {e}") from e

    try:
        config = _CategoryConfigSchema.model_validate(data)
    except ValidationError as e:
        raise ConfigMissing(f"Taxonomy failed validation: {e}") from e

    registry = CategoryRegistry(
        [
            Category(
                id=c.id,
                name=c.name,
                scan_description=c.scan_description,
                fix_instructions=c.fix_instructions,
            )
            for c in config.categories
        ]
    )
    logger.info(f"Loaded {len(registry)} dark pattern categories")
    return registry


def load_default_registry(path: str | None = None) -> CategoryRegistry:
    """Load the taxonomy from `path`, or from the copy bundled with the package."""
    if path:
        return load_registry(Path(path))

    try:
        text = resources.files("fairplay").joinpath("data").joinpath(DEFAULT_CATEGORIES_FILE).read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError) as e:
        raise ConfigMissing(f"Failed to load bundled {DEFAULT_CATEGORIES_FILE}") from e
    return load_registry(text)


def _read_source(source: str | bytes | Path) -> str:
    if isinstance(source, bytes):
        return source.decode("utf-8")
    if isinstance(source, str) and source.lstrip().startswith("{"):
        return source

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigMissing(f"Failed to load taxonomy from {path}: {e}") from e
