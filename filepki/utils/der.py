"""Minimal DER reader for certificate extension payloads.

Only the subset of DER needed to decode the key usage, extended key usage,
basic constraints and subject alternative name extensions is supported:
definite lengths, BOOLEAN, INTEGER, BIT STRING, OCTET STRING, OBJECT
IDENTIFIER and SEQUENCE. The same reader walks a TBSCertificate far enough
to collect the raw extensions. Every malformed input raises DecodeError; the
reader never lets an IndexError or a similar incidental exception escape.
"""

from dataclasses import dataclass
from typing import Optional

from filepki.exceptions import DecodeError

CLASS_UNIVERSAL = 0
CLASS_APPLICATION = 1
CLASS_CONTEXT_SPECIFIC = 2
CLASS_PRIVATE = 3

TAG_BOOLEAN = 1
TAG_INTEGER = 2
TAG_BIT_STRING = 3
TAG_OCTET_STRING = 4
TAG_OBJECT_IDENTIFIER = 6
TAG_SEQUENCE = 16

# Lengths and tag numbers above this are not used by any extension we decode
MAX_LENGTH_OCTETS = 4
MAX_TAG_NUMBER = 0x7FFFFFFF


@dataclass(frozen=True)
class DERElement:
    """A single decoded TLV element."""

    tag_class: int
    constructed: bool
    tag: int
    content: bytes


@dataclass(frozen=True)
class BitString:
    """BIT STRING value; bits past the encoded length read as 0."""

    data: bytes
    bit_length: int

    def at(self, i: int) -> int:
        if i < 0 or i >= self.bit_length:
            return 0
        byte = self.data[i // 8]
        return (byte >> (7 - i % 8)) & 1


class DERReader:
    """Sequential reader over a buffer of DER elements."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._offset = 0

    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def ensure_end(self) -> None:
        """Raise if unconsumed bytes remain."""
        if not self.at_end():
            raise DecodeError("invalid trailing data")

    def read_element(self) -> DERElement:
        """Read the next TLV element."""
        tag_class, constructed, tag = self._read_identifier()
        length = self._read_length()

        end = self._offset + length
        if end > len(self._data):
            raise DecodeError("element length exceeds available data")

        content = self._data[self._offset : end]
        self._offset = end

        return DERElement(tag_class=tag_class, constructed=constructed, tag=tag, content=content)

    def peek_element_header(self) -> Optional[tuple[int, bool, int]]:
        """Return (class, constructed, tag) of the next element without consuming it."""
        if self.at_end():
            return None

        offset = self._offset
        try:
            return self._read_identifier()
        finally:
            self._offset = offset

    def expect(self, tag: int, constructed: bool = False, tag_class: int = CLASS_UNIVERSAL) -> DERElement:
        """Read the next element and check its identifier."""
        element = self.read_element()

        if element.tag_class != tag_class or element.tag != tag:
            raise DecodeError(f"unexpected tag {element.tag} (class {element.tag_class}), expected tag {tag}")

        if element.constructed != constructed:
            form = "constructed" if constructed else "primitive"
            raise DecodeError(f"element with tag {tag} is not {form}")

        return element

    def read_sequence(self) -> "DERReader":
        """Read a SEQUENCE and return a reader over its content."""
        element = self.expect(TAG_SEQUENCE, constructed=True)
        return DERReader(element.content)

    def read_boolean(self) -> bool:
        content = self.expect(TAG_BOOLEAN).content
        if len(content) != 1:
            raise DecodeError("invalid boolean length")

        if content[0] == 0x00:
            return False
        elif content[0] == 0xFF:
            return True

        raise DecodeError("invalid boolean value")

    def read_integer(self) -> int:
        content = self.expect(TAG_INTEGER).content
        if not content:
            raise DecodeError("empty integer")

        if len(content) > 1:
            if (content[0] == 0x00 and content[1] < 0x80) or (content[0] == 0xFF and content[1] >= 0x80):
                raise DecodeError("integer is not minimally encoded")

        return int.from_bytes(content, "big", signed=True)

    def read_bit_string(self) -> BitString:
        content = self.expect(TAG_BIT_STRING).content
        if not content:
            raise DecodeError("empty bit string")

        padding = content[0]
        data = content[1:]

        if padding > 7 or (not data and padding > 0):
            raise DecodeError("invalid bit string padding")

        if data and data[-1] & ((1 << padding) - 1) != 0:
            raise DecodeError("invalid bit string padding bits")

        return BitString(data=data, bit_length=len(data) * 8 - padding)

    def read_octet_string(self) -> bytes:
        return self.expect(TAG_OCTET_STRING).content

    def read_object_identifier(self) -> str:
        """Read an OBJECT IDENTIFIER and return its dotted-decimal form."""
        content = self.expect(TAG_OBJECT_IDENTIFIER).content
        if not content:
            raise DecodeError("empty object identifier")

        arcs = []
        value = 0
        start = True

        for byte in content:
            if start and byte == 0x80:
                raise DecodeError("object identifier arc is not minimally encoded")

            value = (value << 7) | (byte & 0x7F)
            start = False

            if byte & 0x80 == 0:
                arcs.append(value)
                value = 0
                start = True

        if not start:
            raise DecodeError("truncated object identifier")

        first = arcs[0]
        if first < 40:
            components = [0, first]
        elif first < 80:
            components = [1, first - 40]
        else:
            components = [2, first - 80]
        components.extend(arcs[1:])

        return ".".join(str(c) for c in components)

    def _read_byte(self) -> int:
        if self._offset >= len(self._data):
            raise DecodeError("unexpected end of data")

        byte = self._data[self._offset]
        self._offset += 1
        return byte

    def _read_identifier(self) -> tuple[int, bool, int]:
        identifier = self._read_byte()

        tag_class = identifier >> 6
        constructed = bool(identifier & 0x20)
        tag = identifier & 0x1F

        if tag == 0x1F:
            # High tag number form, base 128
            tag = 0
            first = True
            while True:
                byte = self._read_byte()
                if first and byte == 0x80:
                    raise DecodeError("tag number is not minimally encoded")
                first = False

                tag = (tag << 7) | (byte & 0x7F)
                if tag > MAX_TAG_NUMBER:
                    raise DecodeError("tag number too large")

                if byte & 0x80 == 0:
                    break

            if tag < 0x1F:
                raise DecodeError("tag number is not minimally encoded")

        return tag_class, constructed, tag

    def _read_length(self) -> int:
        first = self._read_byte()
        if first < 0x80:
            return first

        if first == 0x80:
            raise DecodeError("indefinite length is not allowed in DER")

        count = first & 0x7F
        if count > MAX_LENGTH_OCTETS:
            raise DecodeError("length too large")

        length = 0
        for i in range(count):
            byte = self._read_byte()
            if i == 0 and byte == 0:
                raise DecodeError("length is not minimally encoded")
            length = (length << 8) | byte

        if length < 0x80:
            raise DecodeError("length is not minimally encoded")

        return length


def is_single_element(data: bytes) -> bool:
    """Check that data holds exactly one well-formed DER element."""
    reader = DERReader(data)
    try:
        reader.read_element()
        reader.ensure_end()
    except DecodeError:
        return False
    return True
