import pytest

from lifeofsounds.files import create_directory, directory_exists, get_file_contents


def test_get_file_contents_reads_bytes(tmp_path):
    target = tmp_path / "clip.webm"
    target.write_bytes(b"\x1a\x45\xdf\xa3data")
    assert get_file_contents(target) == b"\x1a\x45\xdf\xa3data"


def test_get_file_contents_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_file_contents(tmp_path / "absent.webm")


def test_directory_exists(tmp_path):
    regular = tmp_path / "file.txt"
    regular.write_text("x")
    assert directory_exists(tmp_path) is True
    assert directory_exists(regular) is False
    assert directory_exists(tmp_path / "missing") is False


def test_create_directory_then_again(tmp_path):
    target = tmp_path / "users"
    assert create_directory(target) is True
    assert target.is_dir()
    assert create_directory(target) is False


def test_create_directory_without_parent_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        create_directory(tmp_path / "a" / "b")