"""
services/registry.py
──────────────────────────────────────────────────────────────────────────────
Canonical Template Registry: validated, read-only access to the template.

The template data itself lives in config/template.py.  This service checks
it once at construction (validate_template is a pure function so the rules
are unit-tested directly) and answers the lookups every driver needs:

  find(identifier)      → one category by name or 1-based order index
  select(start, count)  → categories[start, start+count), canonical order
  next_start(...)       → resume point after an index-range run
"""
from __future__ import annotations

import logging
from typing import Optional, Union

from tiersync.domain.exceptions import NotFoundError, TemplateError
from tiersync.domain.models import CanonicalCategory, Template

logger = logging.getLogger(__name__)


class TemplateRegistry:
    """Lookup façade over a validated Template.

    Args:
        template: The canonical template (usually config.template.get_template()).

    Raises:
        TemplateError: If the template breaks any authoring rule.
    """

    def __init__(self, template: Template) -> None:
        validate_template(template)
        self._template = template
        self._by_name = {c.name: c for c in template.categories}
        self._by_order = {c.order_index: c for c in template.categories}
        logger.debug(
            "TemplateRegistry ready | version=%s categories=%d questions=%d",
            template.version,
            len(template.categories),
            template.question_count,
        )

    # ── Properties ─────────────────────────────────────────────────────────

    @property
    def template(self) -> Template:
        return self._template

    @property
    def version(self) -> str:
        return self._template.version

    @property
    def categories(self) -> tuple[CanonicalCategory, ...]:
        return self._template.categories

    def __len__(self) -> int:
        return len(self._template.categories)

    # ── Lookups ────────────────────────────────────────────────────────────

    def find(self, identifier: Union[str, int]) -> CanonicalCategory:
        """Resolve a category by exact name or by order index.

        A string made only of digits is treated as an order index, matching
        how identifiers arrive from the command line.

        Raises:
            NotFoundError: If nothing matches.
        """
        if isinstance(identifier, str):
            stripped = identifier.strip()
            if stripped.isdigit():
                identifier = int(stripped)
            else:
                category = self._by_name.get(stripped)
                if category is None:
                    raise NotFoundError(f"No category found with name: {stripped!r}")
                return category

        category = self._by_order.get(identifier)
        if category is None:
            raise NotFoundError(f"No category found with order index: {identifier}")
        return category

    def select(self, start: int, count: int) -> tuple[CanonicalCategory, ...]:
        """Return categories[start, start+count) in canonical order (0-based start).

        Raises:
            ValueError: If start is outside the template or count < 1.
        """
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")
        if not 0 <= start < len(self):
            raise ValueError(
                f"start index {start} outside template range [0, {len(self) - 1}]"
            )
        return self.categories[start:start + count]

    def next_start(self, start: int, count: int) -> Optional[int]:
        """Start index of the batch after [start, start+count), or None when done."""
        following = start + count
        return following if following < len(self) else None


# ── Pure function: template validation ─────────────────────────────────────

def validate_template(template: Template) -> None:
    """Check the authoring rules of a Template.

    Rules:
      • at least one category
      • category names unique
      • category order indexes are exactly 1..N in list order
      • question keys unique across the whole template
      • question texts unique within their category

    Raises:
        TemplateError: Describing the first rule broken.
    """
    if not template.categories:
        raise TemplateError("template has no categories")

    names: set[str] = set()
    keys: set[str] = set()
    for position, category in enumerate(template.categories, start=1):
        if category.name in names:
            raise TemplateError(f"duplicate category name: {category.name!r}")
        names.add(category.name)

        if category.order_index != position:
            raise TemplateError(
                f"category {category.name!r} has order index "
                f"{category.order_index}, expected {position}"
            )

        texts: set[str] = set()
        for question in category.questions:
            if question.key in keys:
                raise TemplateError(f"duplicate question key: {question.key!r}")
            keys.add(question.key)
            if question.text in texts:
                raise TemplateError(
                    f"duplicate question text in {category.name!r}: {question.text!r}"
                )
            texts.add(question.text)
