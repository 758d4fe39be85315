import pytest

from portal_api.adapters.content_types import DEFAULT_CONTENT_TYPE, resolve_content_type


@pytest.mark.parametrize(
    "file_name, expected",
    [
        ("a.jpg", "image/jpeg"),
        ("a.JPEG", "image/jpeg"),
        ("photo.PNG", "image/png"),
        ("a.gif", "image/gif"),
        ("a.webp", "image/webp"),
        ("logo.svg", "image/svg+xml"),
        ("contract.pdf", "application/pdf"),
        ("notes.txt", "text/plain"),
        ("data.json", "application/json"),
    ],
)
def test_known_extensions(file_name, expected):
    assert resolve_content_type(file_name) == expected


def test_extension_beats_the_fallback():
    assert resolve_content_type("photo.png", fallback="application/octet-stream") == "image/png"


def test_unknown_extension_uses_fallback_then_default():
    assert resolve_content_type("archive.tar.zst", fallback="application/zstd") == "application/zstd"
    assert resolve_content_type("archive.tar.zst") == DEFAULT_CONTENT_TYPE
    assert resolve_content_type("README") == DEFAULT_CONTENT_TYPE
