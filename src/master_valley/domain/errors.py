"""Error taxonomy for the transformation workflow."""


class MasterValleyError(Exception):
    """Base exception for workflow errors."""


class CatalogError(MasterValleyError):
    """The static style table is inconsistent."""


class SelectionError(MasterValleyError):
    """An event arrived in a state that does not accept it."""


class UnknownCategoryError(SelectionError):
    """The requested category is not in the catalog."""

    def __init__(self, category_id: str) -> None:
        self.category_id = category_id
        super().__init__(f"Unknown category '{category_id}'")


class UnknownStyleError(SelectionError):
    """The requested style does not belong to the chosen category."""

    def __init__(self, style_id: str, category_id: str | None = None) -> None:
        self.style_id = style_id
        self.category_id = category_id
        super().__init__(f"Unknown style '{style_id}' for category '{category_id}'")


class InvalidPhotoError(SelectionError):
    """The uploaded file is not an image."""


class InvalidStyleError(MasterValleyError):
    """A full transform style cannot be scheduled."""


class TransformError(MasterValleyError):
    """The external transform failed for one style."""

    def __init__(self, style_id: str, reason: str) -> None:
        self.style_id = style_id
        self.reason = reason
        super().__init__(f"Transform failed for '{style_id}': {reason}")


class DuplicateRetryError(MasterValleyError):
    """A retry is already running for the key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Retry already in flight for '{key}'")


class UnknownKeyError(MasterValleyError):
    """The key is not present in the current result aggregate."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No result for key '{key}'")


class StaleGenerationError(MasterValleyError):
    """A result belongs to a session epoch that has since been reset."""

    def __init__(self, key: str, generation: int, current: int) -> None:
        self.key = key
        self.generation = generation
        self.current = current
        super().__init__(
            f"Result for '{key}' from generation {generation} "
            f"arrived during generation {current}"
        )


class NotAuthorizedError(MasterValleyError):
    """The caller has no authenticated user."""
