"""Static registry of style categories."""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from master_valley.domain.errors import CatalogError, UnknownCategoryError
from master_valley.domain.styles import (
    Category,
    FullTransformStyle,
    SingleStyle,
    Style,
)

logger = logging.getLogger(__name__)

CATALOG_TABLE: dict[str, dict[str, object]] = {
    "movements": {
        "name": "Art Movements",
        "icon": "🎨",
        "price": 0.20,
        "full_transform": {
            "id": "movements-all",
            "name": "2,500 Years of Western Art",
            "description": "One photo travels through 2,500 years of Western art",
        },
        "styles": [
            {"id": "ancient", "name": "Greco-Roman", "icon": "🏛️", "period": "BC 800 - AD 500"},
            {"id": "medieval", "name": "Medieval Art", "icon": "⛪", "period": "4th-14th century"},
            {"id": "renaissance", "name": "Renaissance", "icon": "🎭", "period": "14th-16th century"},
            {"id": "baroque", "name": "Baroque", "icon": "👑", "period": "17th century"},
            {"id": "rococo", "name": "Rococo", "icon": "🌸", "period": "18th century"},
            {
                "id": "neoclassicism_vs_romanticism_vs_realism",
                "name": "Neoclassicism vs Romanticism vs Realism",
                "icon": "⚖️",
                "period": "1770-1870",
            },
            {"id": "impressionism", "name": "Impressionism", "icon": "🌅", "period": "1860-1890"},
            {"id": "postImpressionism", "name": "Post-Impressionism", "icon": "🌻", "period": "1880-1910"},
            {"id": "fauvism", "name": "Fauvism", "icon": "🎨", "period": "1905-1908"},
            {"id": "expressionism", "name": "Expressionism", "icon": "😱", "period": "1905-1920"},
            {"id": "modernism", "name": "20th Century Modernism", "icon": "🔮", "period": "1907-1970"},
        ],
    },
    "masters": {
        "name": "Masters Collection",
        "icon": "⭐",
        "price": 0.25,
        "full_transform": {
            "id": "masters-all",
            "name": "The World of Seven Masters",
            "description": "One photo meets the worlds of seven masters",
        },
        "styles": [
            {"id": "vangogh-master", "name": "Van Gogh", "icon": "🌻", "period": "1853-1890"},
            {"id": "klimt-master", "name": "Klimt", "icon": "✨", "period": "1862-1918"},
            {"id": "munch-master", "name": "Munch", "icon": "😱", "period": "1863-1944"},
            {"id": "matisse-master", "name": "Matisse", "icon": "🎭", "period": "1869-1954"},
            {"id": "chagall-master", "name": "Chagall", "icon": "🎠", "period": "1887-1985"},
            {"id": "frida-master", "name": "Frida Kahlo", "icon": "🌺", "period": "1907-1954"},
            {"id": "lichtenstein-master", "name": "Lichtenstein", "icon": "💥", "period": "1923-1997"},
        ],
    },
    "oriental": {
        "name": "East Asian Painting",
        "icon": "🎎",
        "price": 0.20,
        "full_transform": {
            "id": "oriental-all",
            "name": "A Thousand Years of East Asian Aesthetics",
            "description": "One photo meets a thousand years of East Asian aesthetics",
        },
        "styles": [
            {"id": "korean", "name": "Korean Traditional Painting", "icon": "🎎", "period": "Ink, folk and genre painting"},
            {"id": "chinese", "name": "Chinese Traditional Painting", "icon": "🐉", "period": "Ink landscape, gongbi"},
            {"id": "japanese", "name": "Japanese Traditional Painting", "icon": "🗾", "period": "Ukiyo-e"},
        ],
    },
}


@dataclass(frozen=True)
class StyleCatalog:
    """Immutable category registry loaded once at startup."""

    categories: Mapping[str, Category]

    @classmethod
    def from_table(cls, table: Mapping[str, Mapping[str, object]]) -> "StyleCatalog":
        """Build and validate a catalog from a static configuration table."""
        categories: dict[str, Category] = {}
        for category_id, raw in table.items():
            categories[category_id] = _build_category(category_id, raw)
        logger.info("Loaded style catalog with %d categories", len(categories))
        return cls(categories=categories)

    @classmethod
    def default(cls) -> "StyleCatalog":
        return cls.from_table(CATALOG_TABLE)

    def __iter__(self) -> Iterator[Category]:
        return iter(self.categories.values())

    def get(self, category_id: str) -> Category:
        """Return a category or raise UnknownCategoryError."""
        category = self.categories.get(category_id)
        if category is None:
            raise UnknownCategoryError(category_id)
        return category

    def estimated_cost(self, style: Style) -> float:
        """Price of rendering a style, counting every member of a full transform."""
        category = self.get(style.category_id)
        if isinstance(style, FullTransformStyle):
            return round(category.price_per_transform * len(style.member_styles), 2)
        return category.price_per_transform

    def to_dict(self) -> list[dict[str, object]]:
        return [_category_to_dict(category) for category in self]


def _build_category(category_id: str, raw: Mapping[str, object]) -> Category:
    raw_styles = raw.get("styles")
    if not isinstance(raw_styles, list) or not raw_styles:
        raise CatalogError(f"Category '{category_id}' has no member styles")
    members = tuple(
        SingleStyle(
            id=str(item["id"]),
            category_id=category_id,
            display_name=str(item.get("name", item["id"])),
            icon=str(item.get("icon", "")),
            period=str(item.get("period", "")),
        )
        for item in raw_styles
    )
    ids = [style.id for style in members]
    if len(set(ids)) != len(ids):
        raise CatalogError(f"Category '{category_id}' has duplicate style ids")

    raw_full = raw.get("full_transform")
    if not isinstance(raw_full, Mapping):
        raise CatalogError(f"Category '{category_id}' has no full transform")
    full_id = str(raw_full.get("id", f"{category_id}-all"))
    if full_id in ids:
        raise CatalogError(
            f"Full transform id '{full_id}' collides with a member style"
        )
    full_transform = FullTransformStyle(
        id=full_id,
        category_id=category_id,
        display_name=str(raw_full.get("name", full_id)),
        description=str(raw_full.get("description", "")),
        member_styles=members,
    )
    return Category(
        id=category_id,
        display_name=str(raw.get("name", category_id)),
        icon=str(raw.get("icon", "")),
        price_per_transform=float(raw.get("price", 0.0)),
        member_styles=members,
        full_transform=full_transform,
    )


def _category_to_dict(category: Category) -> dict[str, object]:
    return {
        "id": category.id,
        "name": category.display_name,
        "icon": category.icon,
        "price_per_transform": category.price_per_transform,
        "full_transform": {
            "id": category.full_transform.id,
            "name": category.full_transform.display_name,
            "description": category.full_transform.description,
            "count": len(category.full_transform.member_styles),
        },
        "styles": [
            {
                "id": style.id,
                "name": style.display_name,
                "icon": style.icon,
                "period": style.period,
            }
            for style in category.member_styles
        ],
    }
