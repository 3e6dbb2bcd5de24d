"""Tests for the message builder."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from mimemail import (
    LEGACY_BOUNDARY,
    Attachment,
    MailAttachmentError,
    Message,
    new_html_message,
    new_message,
)


class BrokenReader:
    """File-like object whose read always fails."""

    def read(self) -> bytes:
        """Raise an I/O error."""
        raise OSError("disk gone")


class TestConstructors:
    """Coverage for ``new_message`` and ``new_html_message``."""

    def test_new_message_is_plain_text(self) -> None:
        """Plain constructor sets text/plain and empty envelope."""
        message = new_message("Hi", "this is the body")
        assert message.subject == "Hi"
        assert message.body == "this is the body"
        assert message.body_content_type == "text/plain"
        assert message.sender == ""
        assert message.to == []
        assert message.cc == []
        assert message.bcc == []
        assert message.attachments == {}

    def test_new_html_message_is_html(self) -> None:
        """HTML constructor sets text/html."""
        message = new_html_message("Hi", "<p>body</p>")
        assert message.body_content_type == "text/html"

    def test_messages_do_not_share_state(self) -> None:
        """Each message gets its own lists, attachments and boundary."""
        first = new_message("a", "a")
        second = new_message("b", "b")
        first.to.append("x@example.com")
        first.attach_reader(io.BytesIO(b"data"), "data.bin")

        assert second.to == []
        assert second.attachments == {}
        assert first.boundary != second.boundary

    def test_boundary_can_be_pinned(self) -> None:
        """An explicit boundary is kept as given."""
        message = Message(subject="s", body="b", boundary=LEGACY_BOUNDARY)
        assert message.boundary == LEGACY_BOUNDARY


class TestTolist:
    """Coverage for recipient flattening."""

    def test_order_and_duplicates(self) -> None:
        """To, then Cc, then Bcc, duplicates kept."""
        message = new_message("Hi", "body")
        message.to = ["a"]
        message.cc = ["a", "b"]
        message.bcc = ["b"]
        assert message.tolist() == ["a", "a", "b", "b"]

    def test_length_matches_sum(self) -> None:
        """Length equals the sum of the three lists."""
        message = new_message("Hi", "body")
        message.to = ["to@example.com"]
        message.cc = ["to@example.com", "to@example.com"]
        message.bcc = ["to@example.com", "to@example.com"]
        assert len(message.tolist()) == 5

    def test_does_not_mutate_to(self) -> None:
        """Flattening leaves the To list untouched."""
        message = new_message("Hi", "body")
        message.to = ["a"]
        message.cc = ["b"]
        message.tolist()
        message.tolist()
        assert message.to == ["a"]

    def test_empty(self) -> None:
        """No recipients yields an empty list."""
        assert new_message("Hi", "body").tolist() == []


class TestAttachReader:
    """Coverage for reader-based attachments."""

    def test_reader_content_is_stored(self) -> None:
        """Lookup by filename returns the bytes read from the source."""
        message = new_message("Hi", "this is the body")
        message.attach_reader(io.BytesIO(b"Testing is the future"), "Message")

        attachment = message.attachments["Message"]
        assert attachment.data == b"Testing is the future"
        assert attachment.filename == "Message"
        assert attachment.inline is False
        assert attachment.headers == {}

    def test_text_reader_is_utf8_encoded(self) -> None:
        """Text sources are stored as UTF-8 bytes."""
        message = new_message("Hi", "body")
        message.attach_reader(io.StringIO("café"), "notes.txt")
        assert message.attachments["notes.txt"].data == "café".encode()

    def test_headers_are_copied(self) -> None:
        """Caller headers are stored as a copy."""
        headers = {"Content-ID": "<logo>"}
        message = new_message("Hi", "body")
        message.attach_reader(io.BytesIO(b"x"), "logo.png", headers)
        headers["Content-ID"] = "<changed>"
        assert message.attachments["logo.png"].headers == {"Content-ID": "<logo>"}

    def test_inline_reader_sets_inline(self) -> None:
        """Inline reader marks the attachment inline."""
        message = new_message("Hi", "body")
        message.inline_reader(io.BytesIO(b"x"), "part.eml", {"X-Tag": "1"})
        attachment = message.attachments["part.eml"]
        assert attachment.inline is True
        assert attachment.headers == {"X-Tag": "1"}

    def test_same_filename_replaces_previous(self) -> None:
        """A second attachment with the same name wins."""
        message = new_message("Hi", "body")
        message.attach_reader(io.BytesIO(b"first"), "dup.txt")
        message.attach_reader(io.BytesIO(b"other"), "other.txt")
        message.inline_reader(io.BytesIO(b"second"), "dup.txt")

        assert list(message.attachments) == ["other.txt", "dup.txt"]
        assert message.attachments["dup.txt"].data == b"second"
        assert message.attachments["dup.txt"].inline is True

    def test_read_failure_raises_and_leaves_message_usable(self) -> None:
        """Reader errors surface as MailAttachmentError, nothing is stored."""
        message = new_message("Hi", "body")
        message.attach_reader(io.BytesIO(b"keep"), "keep.txt")

        with pytest.raises(MailAttachmentError, match="disk gone") as exc_info:
            message.attach_reader(BrokenReader(), "broken.bin")  # type: ignore[arg-type]

        assert isinstance(exc_info.value, OSError)
        assert exc_info.value.filename == "broken.bin"
        assert list(message.attachments) == ["keep.txt"]

        message.attach_reader(io.BytesIO(b"retry"), "broken.bin")
        assert message.attachments["broken.bin"].data == b"retry"

    def test_undecodable_text_reader_raises(self) -> None:
        """A text reader over invalid UTF-8 surfaces as MailAttachmentError."""
        message = new_message("Hi", "body")
        source = io.TextIOWrapper(io.BytesIO(b"\xff\xfe bad"), encoding="utf-8")

        with pytest.raises(MailAttachmentError) as exc_info:
            message.attach_reader(source, "bad.txt")

        assert exc_info.value.filename == "bad.txt"
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
        assert message.attachments == {}


class TestAttachFile:
    """Coverage for path-based attachments."""

    def test_attach_uses_base_name(self, tmp_path: Path) -> None:
        """Files are keyed by their base name with empty headers."""
        file_path = tmp_path / "reports" / "q1.pdf"
        file_path.parent.mkdir()
        file_path.write_bytes(b"%PDF-1.4 payload")

        message = new_message("Hi", "body")
        message.attach(file_path)

        attachment = message.attachments["q1.pdf"]
        assert attachment == Attachment(filename="q1.pdf", data=b"%PDF-1.4 payload")

    def test_attach_accepts_string_path(self, tmp_path: Path) -> None:
        """String paths work like Path objects."""
        file_path = tmp_path / "data.csv"
        file_path.write_text("a,b\n1,2\n", encoding="utf-8")

        message = new_message("Hi", "body")
        message.attach(str(file_path))
        assert message.attachments["data.csv"].data == b"a,b\n1,2\n"

    def test_inline_file(self, tmp_path: Path) -> None:
        """Inline files are flagged inline."""
        file_path = tmp_path / "forwarded.eml"
        file_path.write_bytes(b"Subject: old\r\n\r\nold body")

        message = new_message("Hi", "body")
        message.inline(file_path)
        assert message.attachments["forwarded.eml"].inline is True

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """Missing files raise MailAttachmentError, also an OSError."""
        message = new_message("Hi", "body")

        with pytest.raises(OSError) as exc_info:
            message.attach(tmp_path / "missing.txt")

        assert isinstance(exc_info.value, MailAttachmentError)
        assert exc_info.value.filename == "missing.txt"
        assert exc_info.value.__cause__ is not None
        assert message.attachments == {}

    def test_directory_raises(self, tmp_path: Path) -> None:
        """Directories cannot be attached."""
        message = new_message("Hi", "body")
        with pytest.raises(MailAttachmentError):
            message.inline(tmp_path)
        assert message.attachments == {}
