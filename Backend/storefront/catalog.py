"""Storefront catalog views built from product documents."""

from typing import Any

UNCATEGORIZED_ID = "uncategorized"


def group_products_by_category(products: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Group products (with `category` expanded) under their category.

    Groups are ordered by category name with "Uncategorized" last; products
    within a group are ordered by name.
    """
    grouped: dict[str, list[dict[str, Any]]] = {}
    for product in products or []:
        category = product.get("category")
        key = category.get("id") if isinstance(category, dict) and category.get("id") else UNCATEGORIZED_ID
        grouped.setdefault(key, []).append(product)

    groups = []
    for key, items in grouped.items():
        if key == UNCATEGORIZED_ID:
            category = {"id": UNCATEGORIZED_ID, "name": "Uncategorized"}
        else:
            category = items[0]["category"]
        groups.append({
            "category": category,
            "products": sorted(items, key=lambda p: (p.get("name") or "").casefold()),
        })

    groups.sort(key=lambda g: (
        g["category"]["id"] == UNCATEGORIZED_ID,
        (g["category"].get("name") or "").casefold(),
    ))
    return groups
