"""Tests for SubjectCollection."""

from __future__ import annotations

import pytest
from pytest_mock import MockerFixture

from autotag.interfaces import SubjectState
from autotag.subjects import SubjectCollection, SubjectRecord


@pytest.fixture
def collection() -> SubjectCollection:
    return SubjectCollection(
        [SubjectRecord(subject_id="a"), SubjectRecord(subject_id="b")]
    )


def test_initial_population(collection: SubjectCollection) -> None:
    """Test the initial subjects are present in order."""
    assert [s.subject_id for s in collection.subjects()] == ["a", "b"]
    assert len(collection) == 2
    assert collection.get("b").subject_id == "b"


def test_get_unknown(collection: SubjectCollection) -> None:
    """Test an unknown id raises KeyError."""
    with pytest.raises(KeyError):
        collection.get("zzz")


def test_add_notifies(collection: SubjectCollection, mocker: MockerFixture) -> None:
    """Test listeners hear about created subjects."""
    listener = mocker.Mock()
    collection.add_listener(listener)
    record = SubjectRecord(subject_id="c")

    collection.add(record)

    listener.subject_created.assert_called_once_with(record)
    assert len(collection) == 3


def test_add_duplicate(collection: SubjectCollection) -> None:
    """Test adding an existing id is refused."""
    with pytest.raises(ValueError, match="Subject 'a' already exists"):
        collection.add(SubjectRecord(subject_id="a"))


def test_remove_marks_destroyed(collection: SubjectCollection) -> None:
    """Test removed subjects are destroyed and gone."""
    removed = collection.remove("a")
    assert removed.is_destroyed
    assert [s.subject_id for s in collection.subjects()] == ["b"]


def test_set_state_notifies(
    collection: SubjectCollection, mocker: MockerFixture
) -> None:
    """Test state changes are announced with old and new state."""
    listener = mocker.Mock()
    collection.add_listener(listener)

    collection.set_state("a", SubjectState.SEEDING)

    subject = collection.get("a")
    assert subject.state is SubjectState.SEEDING
    listener.subject_state_changed.assert_called_once_with(
        subject, SubjectState.STOPPED, SubjectState.SEEDING
    )


def test_set_same_state_is_silent(
    collection: SubjectCollection, mocker: MockerFixture
) -> None:
    """Test setting the current state notifies nobody."""
    listener = mocker.Mock()
    collection.add_listener(listener)

    collection.set_state("a", SubjectState.STOPPED)

    listener.subject_state_changed.assert_not_called()


def test_removed_listener(
    collection: SubjectCollection, mocker: MockerFixture
) -> None:
    """Test removed listeners are no longer called."""
    listener = mocker.Mock()
    collection.add_listener(listener)
    collection.remove_listener(listener)
    collection.remove_listener(listener)

    collection.add(SubjectRecord(subject_id="c"))

    listener.subject_created.assert_not_called()


def test_update(collection: SubjectCollection) -> None:
    """Test attributes are assigned in place."""
    updated = collection.update("b", size=42, display_name="Bee")
    assert updated is collection.get("b")
    assert (updated.size, updated.display_name) == (42, "Bee")


def test_update_files_refreshes_file_names(collection: SubjectCollection) -> None:
    """Test replacing files recomputes the cached base names."""
    collection.update("a", files=("x/old.mkv",))
    assert collection.get("a").file_names == ("old.mkv",)

    updated = collection.update("a", files=("y/new.mkv", "y/new.srt"))

    assert updated.file_names == ("new.mkv", "new.srt")
    assert updated.file_count == 2
