"""Pair latch that waits for both a photo and a style."""

from collections.abc import Callable
from dataclasses import dataclass

from master_valley.domain.errors import SelectionError
from master_valley.domain.photos import Photo
from master_valley.domain.styles import Style

PairReadyHandler = Callable[[Photo, Style], None]


@dataclass
class SelectionGate:
    """Level-sensitive latch over two independently filled slots.

    Both setters overwrite their slot and run the same transition. The handler
    fires the first time both slots hold a value; afterwards the gate is spent
    and rejects further input until the owning session replaces it.
    """

    on_pair_ready: PairReadyHandler
    photo: Photo | None = None
    style: Style | None = None
    fired: bool = False

    def set_photo(self, photo: Photo) -> None:
        self._ensure_open()
        self.photo = photo
        self._evaluate()

    def set_style(self, style: Style) -> None:
        self._ensure_open()
        self.style = style
        self._evaluate()

    def _ensure_open(self) -> None:
        if self.fired:
            raise SelectionError("Selection already submitted for processing")

    def _evaluate(self) -> None:
        if self.photo is None or self.style is None:
            return
        self.on_pair_ready(self.photo, self.style)
        self.fired = True
