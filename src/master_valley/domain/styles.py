"""Domain models for the style catalog."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SingleStyle:
    """One master or movement that can be rendered on its own."""

    id: str
    category_id: str
    display_name: str
    icon: str = ""
    period: str = ""


@dataclass(frozen=True)
class FullTransformStyle:
    """Aggregate style that renders every member style of a category."""

    id: str
    category_id: str
    display_name: str
    description: str
    member_styles: tuple[SingleStyle, ...]


Style = SingleStyle | FullTransformStyle


@dataclass(frozen=True)
class Category:
    """A group of member styles plus its full transform."""

    id: str
    display_name: str
    icon: str
    price_per_transform: float
    member_styles: tuple[SingleStyle, ...]
    full_transform: FullTransformStyle

    def find_style(self, style_id: str) -> Style | None:
        """Return the member or aggregate style with the given id."""
        if style_id == self.full_transform.id:
            return self.full_transform
        for style in self.member_styles:
            if style.id == style_id:
                return style
        return None
