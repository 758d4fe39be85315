import io
import re
from datetime import datetime, timezone

import pytest

from portal_api.adapters.uploads import (
    measure_stream,
    sanitize_file_name,
    unique_blob_name,
    validate_folder_name,
)
from portal_api.errors import InvalidInput


@pytest.mark.parametrize(
    "file_name, expected",
    [
        ("photo.png", "photo.png"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\photo.png", "photo.png"),
        ("uploads/2024/report.pdf", "report.pdf"),
        ("  spaced.txt ", "spaced.txt"),
    ],
)
def test_sanitize_keeps_only_the_last_component(file_name, expected):
    assert sanitize_file_name(file_name) == expected


@pytest.mark.parametrize("file_name", [None, "", "   ", "images/", "..", "a/.", "dir\\"])
def test_sanitize_rejects_names_with_nothing_left(file_name):
    with pytest.raises(InvalidInput):
        sanitize_file_name(file_name)


def test_unique_blob_name_layout():
    now = datetime(2024, 1, 31, 23, 59, tzinfo=timezone.utc)

    blob_name = unique_blob_name("../photo.PNG", now=now)

    assert re.fullmatch(r"2024/01/31/[0-9a-f]{32}-photo\.PNG", blob_name)


def test_unique_blob_names_differ_for_the_same_file():
    assert unique_blob_name("photo.png") != unique_blob_name("photo.png")


def test_measure_stream_restores_position():
    stream = io.BytesIO(b"0123456789")
    stream.seek(4)

    assert measure_stream(stream) == 6
    assert stream.tell() == 4


def test_measure_stream_rejects_empty_and_missing_streams():
    with pytest.raises(InvalidInput):
        measure_stream(io.BytesIO(b""))
    with pytest.raises(InvalidInput):
        measure_stream(None)


def test_measure_stream_rejects_unseekable_streams():
    class Unseekable:
        def tell(self):
            raise OSError("not seekable")

    with pytest.raises(InvalidInput):
        measure_stream(Unseekable())


def test_validate_folder_name_strips_whitespace():
    assert validate_folder_name(" C42 ") == "C42"


@pytest.mark.parametrize("folder_name", ["", "  ", ".", "..", "acme/C42", "acme\\C42", "C42/"])
def test_validate_folder_name_rejects_anything_but_one_component(folder_name):
    with pytest.raises(InvalidInput):
        validate_folder_name(folder_name)
