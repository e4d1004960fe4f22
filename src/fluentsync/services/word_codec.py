"""Byte encoding of the word of the day."""
import json
from dataclasses import asdict, fields
from typing import Optional

from fluentsync.errors import DecodeError, EncodeError
from fluentsync.models.progress_models import WordOfDay

WORD_FIELDS = tuple(f.name for f in fields(WordOfDay))


class WordOfDayCodec:
    """Encode a ``WordOfDay`` as UTF-8 JSON and back.

    Strings are stored as-is: no unicode normalization, trimming or case
    changes, so ``decode(encode(word)) == word``. Extra keys in a stored
    object are ignored so newer writers stay readable.
    """

    def encode(self, word: WordOfDay) -> bytes:
        """Serialize ``word``; raises ``EncodeError`` if it cannot be stored."""
        if not isinstance(word, WordOfDay):
            raise EncodeError(f"WordOfDay expected, got {type(word).__name__}")

        payload = asdict(word)
        for name in WORD_FIELDS:
            if not isinstance(payload[name], str):
                raise EncodeError(f"Field {name} must be a string")

        try:
            return json.dumps(payload, ensure_ascii=False, sort_keys=True).encode("utf-8")
        except UnicodeEncodeError as e:
            # Lone surrogates have no UTF-8 form
            raise EncodeError(f"Word of the day is not valid unicode: {e}") from e

    def decode(self, data: Optional[bytes]) -> WordOfDay:
        """Parse stored bytes; raises ``DecodeError`` on anything malformed."""
        if data is None:
            raise DecodeError("No word of the day stored")
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise DecodeError(f"Byte sequence expected, got {type(data).__name__}")

        try:
            payload = json.loads(bytes(data).decode("utf-8"))
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            raise DecodeError(f"Stored word of the day is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise DecodeError(f"Expected a JSON object, got {type(payload).__name__}")

        values = {}
        for name in WORD_FIELDS:
            if name not in payload:
                raise DecodeError(f"Missing field: {name}")
            if not isinstance(payload[name], str):
                raise DecodeError(f"Field {name} must be a string")
            values[name] = payload[name]

        return WordOfDay(**values)
