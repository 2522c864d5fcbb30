"""Tests for the photo and style pair latch."""

import pytest

from master_valley.domain.errors import SelectionError
from master_valley.domain.photos import Photo
from master_valley.domain.styles import Style
from master_valley.services.catalog import StyleCatalog
from master_valley.services.selection import SelectionGate


def _recording_gate() -> tuple[SelectionGate, list[tuple[Photo, Style]]]:
    fired: list[tuple[Photo, Style]] = []
    gate = SelectionGate(on_pair_ready=lambda photo, style: fired.append((photo, style)))
    return gate, fired


def test_gate_waits_for_both_slots(photo: Photo) -> None:
    gate, fired = _recording_gate()

    gate.set_photo(photo)

    assert fired == []


def test_style_twice_before_photo_fires_once(
    photo: Photo, catalog: StyleCatalog
) -> None:
    gate, fired = _recording_gate()
    masters = catalog.get("masters")

    gate.set_style(masters.member_styles[0])
    gate.set_style(masters.member_styles[1])
    assert fired == []

    gate.set_photo(photo)

    assert fired == [(photo, masters.member_styles[1])]


def test_photo_replaced_before_style(photo: Photo, catalog: StyleCatalog) -> None:
    gate, fired = _recording_gate()
    other = Photo(content=b"\xff\xd8\xffjpeg", content_type="image/jpeg")
    style = catalog.get("oriental").full_transform

    gate.set_photo(photo)
    gate.set_photo(other)
    gate.set_style(style)

    assert fired == [(other, style)]


def test_spent_gate_rejects_further_input(photo: Photo, catalog: StyleCatalog) -> None:
    gate, fired = _recording_gate()
    style = catalog.get("oriental").member_styles[0]
    gate.set_photo(photo)
    gate.set_style(style)

    with pytest.raises(SelectionError):
        gate.set_style(style)
    with pytest.raises(SelectionError):
        gate.set_photo(photo)

    assert len(fired) == 1


def test_handler_failure_leaves_gate_open(photo: Photo, catalog: StyleCatalog) -> None:
    def reject(_photo: Photo, _style: Style) -> None:
        raise SelectionError("not now")

    gate = SelectionGate(on_pair_ready=reject)
    gate.set_photo(photo)

    with pytest.raises(SelectionError):
        gate.set_style(catalog.get("oriental").member_styles[0])

    assert gate.fired is False
