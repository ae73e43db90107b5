"""
Incremental decoding of JSON arrays.

Canvas list endpoints return a JSON array per page. Rather than buffering the
whole page, the elements are decoded and handed out as soon as the bytes for
each one have arrived.
"""

import codecs
import json
from typing import Any, AsyncIterator, List

_WHITESPACE = " \t\n\r"
_DELIMITERS = _WHITESPACE + ",]"

_START = "start"
_FIRST = "first"
_VALUE = "value"
_SEPARATOR = "separator"
_DONE = "done"


def _skip_whitespace(buffer: str, pos: int) -> int:
    while pos < len(buffer) and buffer[pos] in _WHITESPACE:
        pos += 1
    return pos


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class JsonArrayParser:
    """
    Push parser for a single top-level JSON array.

    Text is fed in arbitrary pieces; :meth:`feed` returns the elements that
    became complete. A top-level ``null`` or an empty document is treated as
    an empty array.
    """

    def __init__(self) -> None:
        self._decoder = json.JSONDecoder()
        self._buffer = ""
        self._state = _START

    def feed(self, text: str) -> List[Any]:
        buffer = self._buffer + text
        items: List[Any] = []
        pos = 0
        while True:
            pos = _skip_whitespace(buffer, pos)
            if pos >= len(buffer):
                break
            char = buffer[pos]

            if self._state == _START:
                if char == "[":
                    self._state = _FIRST
                    pos += 1
                elif char == "n":
                    if len(buffer) - pos < 4:
                        break
                    if buffer[pos:pos + 4] != "null":
                        raise ValueError("Expected a JSON array")
                    self._state = _DONE
                    pos += 4
                else:
                    raise ValueError("Expected a JSON array")

            elif self._state in (_FIRST, _VALUE):
                if char == "]" and self._state == _FIRST:
                    self._state = _DONE
                    pos += 1
                    continue
                try:
                    item, end = self._decoder.raw_decode(buffer, pos)
                except json.JSONDecodeError:
                    # Incomplete element, wait for more data
                    break
                if end >= len(buffer):
                    # A number could still continue in the next chunk
                    break
                if _is_number(item) and buffer[end] not in _DELIMITERS:
                    # Stopped inside a number such as "1." or "2e"
                    break
                items.append(item)
                pos = end
                self._state = _SEPARATOR

            elif self._state == _SEPARATOR:
                if char == ",":
                    self._state = _VALUE
                elif char == "]":
                    self._state = _DONE
                else:
                    raise ValueError(f"Unexpected character {char!r} in JSON array")
                pos += 1

            else:
                raise ValueError("Unexpected data after the end of the JSON array")

        self._buffer = buffer[pos:]
        return items

    def close(self) -> None:
        """Check that the document ended cleanly."""
        if self._buffer.strip() or self._state not in (_START, _DONE):
            raise ValueError("Truncated JSON array")


async def iter_json_array(chunks: AsyncIterator[bytes]) -> AsyncIterator[Any]:
    """
    Yield the elements of a JSON array read from a stream of byte chunks.

    Args:
        chunks: The raw (UTF-8) response body

    Raises:
        ValueError: If the body is not a well-formed JSON array
    """
    decoder = codecs.getincrementaldecoder("utf-8")()
    parser = JsonArrayParser()
    async for chunk in chunks:
        for item in parser.feed(decoder.decode(chunk)):
            yield item
    for item in parser.feed(decoder.decode(b"", final=True)):
        yield item
    parser.close()
