import pytest

from flatdrive.models import Record


def test_record():
    r = Record(owner="o", path="a/b.txt", name="b.txt", size=3)
    assert (r.is_folder, r.size) == (False, 3)
    r = Record(owner="o", path="a/b/", name="b", is_folder=True)
    assert (r.is_folder, r.size) == (True, 0)
    assert r.created_at.tzinfo is not None


def test_record_folder_must_match_path():
    with pytest.raises(ValueError):
        Record(owner="o", path="a.txt", name="a.txt", is_folder=True)
    with pytest.raises(ValueError):
        Record(owner="o", path="a/", name="a", is_folder=False)


def test_folder_size_is_zero():
    with pytest.raises(ValueError):
        Record(owner="o", path="a/", name="a", is_folder=True, size=3)
    with pytest.raises(ValueError):
        Record(owner="o", path="a.txt", name="a.txt", size=-1)


def test_record_name_must_match_path():
    with pytest.raises(ValueError):
        Record(owner="o", path="a/b.txt", name="zzz")
    with pytest.raises(ValueError):
        Record(owner="o", path="a/b/", name="a", is_folder=True)
