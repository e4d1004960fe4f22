"""Tests for the word of the day codec."""
import json

import pytest

from fluentsync.errors import DecodeError, EncodeError
from fluentsync.models.progress_models import WordOfDay
from fluentsync.services.word_codec import WordOfDayCodec


@pytest.fixture
def codec() -> WordOfDayCodec:
    """Create a codec instance."""
    return WordOfDayCodec()


def test_round_trip_preserves_text_exactly(codec: WordOfDayCodec) -> None:
    """Test that unicode, whitespace and case survive encoding."""
    word = WordOfDay(
        word="  Café́ ",
        definition="Line one\nline TWO\t",
        example="\"Quoted\" \\ backslash 😀",
        pronunciation="/ˌserənˈdɪpɪti/",
    )
    assert codec.decode(codec.encode(word)) == word


def test_round_trip_random_word(codec: WordOfDayCodec, random_word: WordOfDay) -> None:
    """Test round trip with generated content."""
    assert codec.decode(codec.encode(random_word)) == random_word


def test_encoding_is_deterministic(codec: WordOfDayCodec, random_word: WordOfDay) -> None:
    """Test that the same word always encodes to the same bytes."""
    assert codec.encode(random_word) == codec.encode(random_word)


def test_encoding_is_json_object(codec: WordOfDayCodec) -> None:
    """Test the stored shape."""
    word = WordOfDay(word="Serendipity", definition="d", example="e", pronunciation="p")
    payload = json.loads(codec.encode(word).decode("utf-8"))
    assert payload == {
        "word": "Serendipity",
        "definition": "d",
        "example": "e",
        "pronunciation": "p",
    }


def test_encode_rejects_non_string_fields(codec: WordOfDayCodec) -> None:
    """Test that malformed words raise EncodeError."""
    with pytest.raises(EncodeError):
        codec.encode(WordOfDay(word=3, definition="d", example="e", pronunciation="p"))
    with pytest.raises(EncodeError):
        codec.encode({"word": "w"})


def test_encode_rejects_lone_surrogates(codec: WordOfDayCodec) -> None:
    """Test that text without a UTF-8 form raises EncodeError."""
    with pytest.raises(EncodeError):
        codec.encode(WordOfDay(word="\ud800", definition="d", example="e", pronunciation="p"))


@pytest.mark.parametrize(
    "data",
    [
        None,
        b"",
        b'{"word": "Serendipity", "definition": "The occ',
        b"\xff\xfe\x00",
        b"[1, 2, 3]",
        b'"just a string"',
        b'{"word": "w", "definition": "d", "example": "e"}',
        b'{"word": "w", "definition": "d", "example": "e", "pronunciation": 5}',
        b'{"word": null, "definition": "d", "example": "e", "pronunciation": "p"}',
        b"[" * 200000,
        b'{"word": ' * 100000,
    ],
)
def test_decode_failures(codec: WordOfDayCodec, data) -> None:
    """Test that absent, truncated or misshapen data raises DecodeError."""
    with pytest.raises(DecodeError):
        codec.decode(data)


def test_decode_ignores_extra_keys(codec: WordOfDayCodec) -> None:
    """Test that unknown keys from newer writers are ignored."""
    data = b'{"word": "w", "definition": "d", "example": "e", "pronunciation": "p", "level": 3}'
    assert codec.decode(data) == WordOfDay(word="w", definition="d", example="e", pronunciation="p")
