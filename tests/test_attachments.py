from datetime import datetime, timezone

import pytest

from servicedesk.core.errors import ValidationError
from servicedesk.tickets.attachments import AttachmentStorage, IncomingFile

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "filename,content_type",
    [
        ("photo.jpg", "image/jpeg"),
        ("photo.JPEG", "image/jpeg"),
        ("shot.png", "image/png"),
        ("report.pdf", "application/pdf; charset=binary"),
    ],
)
def test_allowed_files_pass_validation(tmp_path, filename, content_type):
    AttachmentStorage(tmp_path).validate([IncomingFile(filename, content_type, b"data")])


@pytest.mark.parametrize(
    "filename,content_type",
    [
        ("script.exe", "application/octet-stream"),
        ("fake.png", "application/pdf"),
        ("fake.pdf", "text/plain"),
        ("noextension", "image/png"),
    ],
)
def test_extension_and_mime_must_both_match(tmp_path, filename, content_type):
    with pytest.raises(ValidationError):
        AttachmentStorage(tmp_path).validate([IncomingFile(filename, content_type, b"data")])


def test_size_limit(tmp_path):
    storage = AttachmentStorage(tmp_path, max_bytes=4)
    storage.validate([IncomingFile("a.png", "image/png", b"1234")])
    with pytest.raises(ValidationError):
        storage.validate([IncomingFile("a.png", "image/png", b"12345")])


def test_file_count_limit(tmp_path):
    files = [IncomingFile(f"{index}.png", "image/png", b"x") for index in range(6)]
    with pytest.raises(ValidationError):
        AttachmentStorage(tmp_path).validate(files)


def test_one_bad_file_rejects_the_whole_batch(tmp_path):
    storage = AttachmentStorage(tmp_path / "uploads")
    files = [IncomingFile("ok.png", "image/png", b"x"), IncomingFile("bad.exe", "application/x-msdownload", b"x")]

    with pytest.raises(ValidationError):
        storage.store_all(files, uploaded_by="Ana", now=NOW)

    assert not (tmp_path / "uploads").exists()


def test_stored_names_are_random_and_keep_extension(tmp_path):
    storage = AttachmentStorage(tmp_path)
    first, second = storage.store_all(
        [IncomingFile("a.png", "image/png", b"1"), IncomingFile("a.png", "image/png", b"2")],
        uploaded_by="Ana",
        now=NOW,
    )

    assert first.stored_name != second.stored_name
    assert first.stored_name.endswith(".png")
    assert first.original_name == "a.png"
    assert first.uploaded_by == "Ana"
    assert first.uploaded_at == NOW


def test_remove_reports_missing_file(tmp_path):
    storage = AttachmentStorage(tmp_path)
    (attachment,) = storage.store_all([IncomingFile("a.pdf", "application/pdf", b"%PDF")], uploaded_by="Ana", now=NOW)

    assert storage.remove(attachment.stored_name) is True
    assert storage.remove(attachment.stored_name) is False


def test_remove_never_leaves_the_upload_directory(tmp_path):
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    outside = tmp_path / "secret.txt"
    outside.write_text("keep")

    AttachmentStorage(uploads).remove("../secret.txt")

    assert outside.exists()
