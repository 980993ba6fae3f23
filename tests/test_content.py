"""Tests for content body serialization."""

import pytest

from drive_workspace_sync.content import DATA_MARKER, decode_body, parse_content, serialize_content
from drive_workspace_sync.exceptions import ParseError
from drive_workspace_sync.protocol import Content, SyncLocation


class TestSerializeContent:
    """Tests for serialize_content."""

    def test_plain_text_has_no_trailer(self) -> None:
        """Content without extra data serializes to its text only."""
        content = Content(id="f1/content", text="# Title\n\nBody")

        assert serialize_content(content) == "# Title\n\nBody"

    def test_extra_data_goes_to_trailer(self) -> None:
        """Properties, discussions and comments are appended as a trailer."""
        content = Content(
            id="f1/content",
            text="Body",
            properties="title: Note\n",
            discussions={"d1": {"text": "Body"}},
        )

        body = serialize_content(content)

        assert body.startswith(f"Body{DATA_MARKER}")
        assert body.endswith("-->")
        lines = body[len(f"Body{DATA_MARKER}") : -len("-->")].split("\n")
        assert all(len(line) <= 50 for line in lines)


class TestParseContent:
    """Tests for parse_content."""

    def test_plain_text(self) -> None:
        """A body without trailer is all text."""
        content = parse_content("Hello", SyncLocation("f1"))

        assert content.id == "f1/content"
        assert content.text == "Hello"
        assert content.properties == "\n"
        assert content.discussions == {}
        assert content.comments == {}

    def test_roundtrip_with_trailer(self) -> None:
        """Serialized content parses back to an identical hashed content."""
        original = Content(
            id="f1/content",
            text="Body\n",
            properties="title: Note\n",
            discussions={"d1": {"text": "Body"}},
            comments={"c1": {"discussionId": "d1", "text": "ok"}},
        ).with_hash()

        parsed = parse_content(serialize_content(original), SyncLocation("f1"))

        assert parsed == original

    def test_hash_is_computed(self) -> None:
        """Parsed content carries the hash of its fields."""
        parsed = parse_content("Hello", SyncLocation("f1"))

        assert parsed.hash != 0
        assert parsed.hash == parsed.with_hash().hash

    def test_different_text_different_hash(self) -> None:
        """Text changes are reflected in the hash."""
        first = parse_content("Hello", SyncLocation("f1"))
        second = parse_content("Hello!", SyncLocation("f1"))

        assert first.hash != second.hash

    def test_malformed_trailer_kept_as_text(self) -> None:
        """A trailer that does not decode stays in the text."""
        body = f"Hello{DATA_MARKER}not base64!-->"

        content = parse_content(body, SyncLocation("f1"))

        assert content.text == body
        assert content.discussions == {}

    def test_without_location(self) -> None:
        """Revision content can be parsed without a location."""
        content = parse_content("Hello")

        assert content.id is None
        assert content.text == "Hello"


class TestDecodeBody:
    """Tests for decode_body."""

    def test_utf8(self) -> None:
        assert decode_body("r1", "café".encode("utf-8")) == "café"

    def test_invalid_utf8_raises(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            decode_body("r1", b"\xff")

        assert exc_info.value.remote_id == "r1"
