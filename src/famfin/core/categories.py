"""Category hierarchy helpers.

Categories are stored flat; a ``Parent:Child`` name places the category under
``Parent``. Everything that needs the hierarchy goes through these helpers
rather than splitting names itself.
"""

from collections.abc import Iterable
from typing import Any

from .models import CategoryNode

HIERARCHY_DELIMITER = ":"
UNCATEGORISED = "Uncategorised"


def split_category_name(name: str) -> tuple[str, str | None]:
    """Split a display name into ``(parent, child)``.

    Only the first delimiter counts, and a leading delimiter does not make a
    parent. Names without a parent return ``(name, None)``.
    """
    index = name.find(HIERARCHY_DELIMITER)
    if index > 0:
        return name[:index].strip(), name[index + 1 :].strip()
    return name, None


def category_matches_group(category_name: str | None, group_name: str) -> bool:
    """Whether a category belongs to a chart group (itself or one of its children)."""
    name = category_name or UNCATEGORISED
    if name == group_name:
        return True
    parent, child = split_category_name(name)
    return child is not None and parent == group_name


def build_category_tree(categories: Iterable[Any]) -> list[CategoryNode]:
    """Build an explicit parent/child tree from flat category rows.

    A parent that only exists implicitly (``Holiday:Flights`` with no
    ``Holiday`` row) gets a node without a ``category_id``.
    """
    roots: dict[str, CategoryNode] = {}

    for category in sorted(categories, key=lambda c: c.name):
        parent, child = split_category_name(category.name)
        category_type = getattr(category, "category_type", None)
        if child is None:
            node = roots.get(parent)
            if node is None:
                roots[parent] = CategoryNode(
                    name=parent, full_name=category.name, category_id=category.id, category_type=category_type
                )
            else:
                node.category_id = category.id
                node.category_type = category_type
            continue

        node = roots.setdefault(parent, CategoryNode(name=parent, full_name=parent))
        node.children.append(
            CategoryNode(name=child, full_name=category.name, category_id=category.id, category_type=category_type)
        )

    return sorted(roots.values(), key=lambda n: n.name)
