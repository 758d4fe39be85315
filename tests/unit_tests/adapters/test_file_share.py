import io

import pytest

from portal_api.errors import InvalidInput, StorageUnavailable
from tests.consts import TEST_CUSTOMER_ID, TEST_PDF_CONTENT, TEST_PDF_NAME


async def test_upload_file_into_customer_folder(gateway, connection):
    path = await gateway.upload_file(TEST_PDF_NAME, io.BytesIO(TEST_PDF_CONTENT), customer_scope=TEST_CUSTOMER_ID)

    assert path == "C42/contract.pdf"
    stored = connection.file_share_root / "contracts" / "C42" / "contract.pdf"
    assert stored.read_bytes() == TEST_PDF_CONTENT


async def test_upload_file_without_scope_lands_in_share_root(gateway, connection):
    path = await gateway.upload_file("../../" + TEST_PDF_NAME, io.BytesIO(TEST_PDF_CONTENT))

    assert path == "contract.pdf"
    assert (connection.file_share_root / "contracts" / "contract.pdf").read_bytes() == TEST_PDF_CONTENT


async def test_upload_file_overwrites_same_name(gateway, connection):
    await gateway.upload_file("notes.txt", io.BytesIO(b"a much longer first version"))
    await gateway.upload_file("notes.txt", io.BytesIO(b"short"))

    assert (connection.file_share_root / "contracts" / "notes.txt").read_bytes() == b"short"


async def test_empty_file_is_rejected(gateway, connection):
    with pytest.raises(InvalidInput):
        await gateway.upload_file("empty.pdf", io.BytesIO(b""), customer_scope=TEST_CUSTOMER_ID)

    assert not (connection.file_share_root / "contracts" / "C42").exists()


async def test_write_failure_is_not_retried(gateway, connection, no_sleep):
    # a regular file where the customer folder should be
    (connection.file_share_root / "contracts" / "C7").write_bytes(b"")

    with pytest.raises(StorageUnavailable):
        await gateway.upload_file(TEST_PDF_NAME, io.BytesIO(TEST_PDF_CONTENT), customer_scope="C7")

    assert no_sleep == []


@pytest.mark.parametrize("content, declared_length", [(b"abc", 5), (b"abcdef", 4)])
def test_stream_that_changes_length_after_measuring_is_rejected(gateway, content, declared_length):
    share = gateway.file_share

    with pytest.raises(InvalidInput):
        share._upload_sync("notes.txt", io.BytesIO(content), declared_length, None)


async def test_stream_growing_during_upload_is_rejected(gateway):
    class GrowingStream(io.BytesIO):
        def read(self, size=-1):
            chunk = super().read(size)
            if chunk:
                # another writer appends while the copy is running
                position = self.tell()
                self.seek(0, io.SEEK_END)
                self.write(b"more")
                self.seek(position)
            return chunk

    with pytest.raises(InvalidInput):
        await gateway.upload_file("notes.txt", GrowingStream(b"first part"))


@pytest.mark.parametrize("customer_scope", ["acme/C42", "acme\\C42", "..", "."])
async def test_customer_scope_must_be_a_single_folder(gateway, connection, customer_scope):
    with pytest.raises(InvalidInput):
        await gateway.upload_file(TEST_PDF_NAME, io.BytesIO(TEST_PDF_CONTENT), customer_scope=customer_scope)

    assert not (connection.file_share_root / "contracts" / "C42").exists()


async def test_blank_customer_scope_means_share_root(gateway):
    path = await gateway.upload_file(TEST_PDF_NAME, io.BytesIO(TEST_PDF_CONTENT), customer_scope="   ")

    assert path == "contract.pdf"
