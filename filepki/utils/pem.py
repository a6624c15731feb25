"""PEM armor encoding and decoding, with RFC 1421 headers."""

import base64
import binascii
import re
from dataclasses import dataclass, field

from filepki.exceptions import ParseError

PEM_PRIVATE_KEY = "PRIVATE KEY"
PEM_CERTIFICATE = "CERTIFICATE"
PEM_CRL = "X509 CRL"

_BLOCK_PATTERN = re.compile(
    rb"-----BEGIN (?P<label>[A-Z0-9 ]+)-----\r?\n(?P<body>.*?)-----END (?P=label)-----",
    re.DOTALL,
)


@dataclass
class PEMBlock:
    """A decoded PEM block."""

    label: str
    data: bytes
    headers: dict[str, str] = field(default_factory=dict)


def encode_pem(block: PEMBlock) -> bytes:
    """Encode a block, 64 base64 characters per line."""
    lines = [f"-----BEGIN {block.label}-----"]

    if block.headers:
        # Proc-Type must come first
        names = sorted(block.headers, key=lambda name: name != "Proc-Type")
        lines.extend(f"{name}: {block.headers[name]}" for name in names)
        lines.append("")

    encoded = base64.b64encode(block.data).decode("ascii")
    lines.extend(encoded[i : i + 64] for i in range(0, len(encoded), 64))
    lines.append(f"-----END {block.label}-----")

    return ("\n".join(lines) + "\n").encode("ascii")


def decode_pem(data: bytes, label: str) -> PEMBlock:
    """
    Decode the first PEM block of the expected type.

    Args:
        data: Armored data
        label: Expected block label

    Returns:
        Decoded block

    Raises:
        ParseError: If no block is found or the block is malformed
    """
    match = _BLOCK_PATTERN.search(data)
    if match is None:
        raise ParseError("no pem block found")

    found_label = match.group("label").decode("ascii")
    if found_label != label:
        raise ParseError(f"unexpected pem block type {found_label!r}, expected {label!r}")

    headers: dict[str, str] = {}
    body_lines = match.group("body").decode("ascii", errors="replace").splitlines()

    if body_lines and ":" in body_lines[0]:
        while body_lines and body_lines[0].strip():
            name, sep, value = body_lines.pop(0).partition(":")
            if not sep:
                raise ParseError("invalid pem header")
            headers[name.strip()] = value.strip()
        if body_lines:
            body_lines.pop(0)

    try:
        der = base64.b64decode("".join(line.strip() for line in body_lines), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ParseError(f"invalid pem data: {e}") from e

    return PEMBlock(label=found_label, data=der, headers=headers)
