import pytest

from besieger.contenttype import (
    PostData,
    get_content_type,
    get_file_extension,
    is_ascii,
    load_file,
    write_file,
)


@pytest.mark.parametrize(
    "name, ext",
    [
        ("index.html", "html"),
        ("archive.tar.gz", "gz"),
        (".bashrc", ""),
        ("noext", ""),
        ("trailing.", ""),
    ],
)
def test_get_file_extension(name, ext):
    assert get_file_extension(name) == ext


def test_content_type_known_extensions():
    assert get_content_type("data.json") == "application/json"
    assert get_content_type("page.html") == "text/html"
    assert get_content_type("pic.png") == "image/png"


def test_content_type_unknown_falls_back_to_default():
    assert get_content_type("thing.qqq") == "application/x-www-form-urlencoded"
    assert get_content_type("noext") == "application/x-www-form-urlencoded"


def test_content_type_is_case_insensitive():
    assert get_content_type("PIC.PNG") == get_content_type("pic.png")


def test_is_ascii():
    assert is_ascii("notes.txt") is True
    assert is_ascii("pic.png") is False
    assert is_ascii("thing.qqq") is True


def test_load_text_file_is_trimmed(tmp_path):
    path = tmp_path / "body.txt"
    path.write_bytes(b"  name=value&x=y \n\n")
    result = load_file(str(path))
    assert result == PostData("text/plain", b"name=value&x=y")
    assert len(result) == len(b"name=value&x=y")


def test_load_text_file_stops_at_nul(tmp_path):
    path = tmp_path / "body.txt"
    path.write_bytes(b"abc\0def")
    assert load_file(str(path)).data == b"abc"


def test_load_binary_file_is_kept_whole(tmp_path):
    raw = b"\x00\x01 body \n"
    path = tmp_path / "image.png"
    path.write_bytes(raw)
    result = load_file(str(path))
    assert result.data == raw
    assert result.content_type == "image/png"


def test_load_file_content_type_override(tmp_path):
    path = tmp_path / "body.txt"
    path.write_bytes(b"payload")
    assert load_file(str(path), "application/json").content_type == "application/json"


def test_load_file_path_is_stripped(tmp_path):
    path = tmp_path / "body.txt"
    path.write_bytes(b"payload")
    assert load_file(f"  {path}  ").data == b"payload"


def test_load_empty_or_blank_file_returns_none(tmp_path):
    empty = tmp_path / "empty.txt"
    empty.write_bytes(b"")
    blank = tmp_path / "blank.txt"
    blank.write_bytes(b"  \n\t ")
    assert load_file(str(empty)) is None
    assert load_file(str(blank)) is None


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        load_file(str(tmp_path / "missing.txt"))


def test_write_file_round_trip(tmp_path):
    path = tmp_path / "out.bin"
    write_file(str(path), b"\x00\xffdata")
    assert path.read_bytes() == b"\x00\xffdata"
    write_file(str(path), "text")
    assert path.read_bytes() == b"text"