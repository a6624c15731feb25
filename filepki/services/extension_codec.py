"""Decoding of certificate extension payloads."""

import logging
from dataclasses import dataclass
from enum import IntEnum
from ipaddress import ip_address
from typing import Optional, Union

from filepki.exceptions import DecodeError, UnknownTag
from filepki.models.ca import SubjectAltName
from filepki.models.extensions import BasicConstraints, ExtendedKeyUsage, KeyUsage
from filepki.utils.der import CLASS_CONTEXT_SPECIFIC, CLASS_UNIVERSAL, TAG_BOOLEAN, TAG_INTEGER, DERReader
from filepki.utils.validators import validate_uri

logger = logging.getLogger("filepki")

OID_KEY_USAGE = "2.5.29.15"
OID_SUBJECT_ALT_NAME = "2.5.29.17"
OID_BASIC_CONSTRAINTS = "2.5.29.19"
OID_EXTENDED_KEY_USAGE = "2.5.29.37"

# [3] EXPLICIT Extensions in a TBSCertificate
TBS_EXTENSIONS_TAG = 3

# RFC 5280 4.2.1.12
KEY_PURPOSE_NAMES = {
    "1.3.6.1.5.5.7.3.1": "serverAuth",
    "1.3.6.1.5.5.7.3.2": "clientAuth",
    "1.3.6.1.5.5.7.3.3": "codeSigning",
    "1.3.6.1.5.5.7.3.4": "emailProtection",
    "1.3.6.1.5.5.7.3.5": "IPSECEndSystem",
    "1.3.6.1.5.5.7.3.6": "IPSECTunnel",
    "1.3.6.1.5.5.7.3.7": "IPSECUser",
    "1.3.6.1.5.5.7.3.8": "timeStamping",
    "1.3.6.1.5.5.7.3.9": "OCSPSigning",
}

DecodedExtension = Union[KeyUsage, ExtendedKeyUsage, BasicConstraints, SubjectAltName]


@dataclass(frozen=True)
class RawExtension:
    """Extension as encoded in a certificate, payload undecoded."""

    oid: str
    critical: bool
    value: bytes


class GeneralNameTag(IntEnum):
    """Context tags of the general names found in SAN extensions."""

    EMAIL_ADDRESS = 1
    DNS_NAME = 2
    URI = 6
    IP_ADDRESS = 7


class ExtensionCodec:
    """Decoders for the key usage, extended key usage, basic constraints and SAN extensions.

    Payloads may come from untrusted certificates: every malformed input raises
    DecodeError, never a partial result.
    """

    @staticmethod
    def decode(oid: str, data: bytes) -> Optional[DecodedExtension]:
        """
        Decode an extension payload by extension OID.

        Args:
            oid: Dotted-decimal extension OID
            data: Raw extension value

        Returns:
            Decoded value, or None for extensions without a decoder
        """
        if oid == OID_KEY_USAGE:
            return ExtensionCodec.decode_key_usage(data)
        elif oid == OID_SUBJECT_ALT_NAME:
            return ExtensionCodec.decode_subject_alt_name(data)
        elif oid == OID_BASIC_CONSTRAINTS:
            return ExtensionCodec.decode_basic_constraints(data)
        elif oid == OID_EXTENDED_KEY_USAGE:
            return ExtensionCodec.decode_extended_key_usage(data)

        return None

    @staticmethod
    def read_extensions(tbs_certificate: bytes) -> list[RawExtension]:
        """
        Collect the extensions of a DER TBSCertificate without decoding them.

        Fields before the extensions are skipped unparsed.

        Args:
            tbs_certificate: DER encoded TBSCertificate

        Returns:
            Extensions in encoded order

        Raises:
            DecodeError: If the structure is malformed
        """
        reader = DERReader(tbs_certificate)
        tbs = reader.read_sequence()
        reader.ensure_end()

        extensions = []
        while not tbs.at_end():
            element = tbs.read_element()
            if element.tag_class != CLASS_CONTEXT_SPECIFIC or element.tag != TBS_EXTENSIONS_TAG:
                continue

            if not element.constructed:
                raise DecodeError("certificate extensions are not constructed")

            wrapper = DERReader(element.content)
            seq = wrapper.read_sequence()
            wrapper.ensure_end()

            while not seq.at_end():
                ext = seq.read_sequence()
                oid = ext.read_object_identifier()

                critical = False
                if ext.peek_element_header() == (CLASS_UNIVERSAL, False, TAG_BOOLEAN):
                    critical = ext.read_boolean()

                value = ext.read_octet_string()
                ext.ensure_end()

                extensions.append(RawExtension(oid=oid, critical=critical, value=value))

        return extensions

    @staticmethod
    def decode_key_usage(data: bytes) -> KeyUsage:
        """Decode a key usage BIT STRING (RFC 5280 4.2.1.3)."""
        reader = DERReader(data)
        bits = reader.read_bit_string()
        reader.ensure_end()

        return KeyUsage(
            digital_signature=bits.at(0) != 0,
            non_repudiation=bits.at(1) != 0,
            key_encipherment=bits.at(2) != 0,
            data_encipherment=bits.at(3) != 0,
            key_agreement=bits.at(4) != 0,
            key_cert_sign=bits.at(5) != 0,
            crl_sign=bits.at(6) != 0,
            encipher_only=bits.at(7) != 0,
            decipher_only=bits.at(8) != 0,
        )

    @staticmethod
    def decode_extended_key_usage(data: bytes) -> ExtendedKeyUsage:
        """Decode a SEQUENCE OF KeyPurposeId; unknown purposes stay in dotted form."""
        reader = DERReader(data)
        seq = reader.read_sequence()
        reader.ensure_end()

        usage = ExtendedKeyUsage()
        while not seq.at_end():
            oid = seq.read_object_identifier()
            usage.key_purpose_ids.append(KEY_PURPOSE_NAMES.get(oid, oid))

        return usage

    @staticmethod
    def decode_basic_constraints(data: bytes) -> BasicConstraints:
        """Decode basic constraints; an absent path length decodes to -1."""
        reader = DERReader(data)
        seq = reader.read_sequence()
        reader.ensure_end()

        constraints = BasicConstraints()

        if seq.peek_element_header() == (CLASS_UNIVERSAL, False, TAG_BOOLEAN):
            constraints.ca = seq.read_boolean()

        if seq.peek_element_header() == (CLASS_UNIVERSAL, False, TAG_INTEGER):
            path_len = seq.read_integer()
            if path_len < 0:
                raise DecodeError("negative path length constraint")
            constraints.path_len_constraint = path_len

        seq.ensure_end()
        return constraints

    @staticmethod
    def decode_subject_alt_name(data: bytes) -> SubjectAltName:
        """
        Decode a SAN extension.

        Entries are returned in encoded order, without deduplication.

        Raises:
            UnknownTag: For a general name type other than email, DNS, URI or IP
            DecodeError: For any other malformed content
        """
        reader = DERReader(data)
        seq = reader.read_sequence()
        reader.ensure_end()

        san = SubjectAltName()

        while not seq.at_end():
            element = seq.read_element()

            # Selected by tag number, whatever the class
            try:
                tag = GeneralNameTag(element.tag)
            except ValueError:
                raise UnknownTag(element.tag) from None

            if element.constructed:
                raise DecodeError(f"general name with tag {element.tag} is not primitive")

            if tag is GeneralNameTag.EMAIL_ADDRESS:
                san.email_addresses.append(_raw_string(element.content))
            elif tag is GeneralNameTag.DNS_NAME:
                san.dns_names.append(_raw_string(element.content))
            elif tag is GeneralNameTag.URI:
                uri = _raw_string(element.content)
                try:
                    san.uris.append(validate_uri(uri))
                except ValueError as e:
                    raise DecodeError(str(e)) from e
            elif tag is GeneralNameTag.IP_ADDRESS:
                if len(element.content) not in (4, 16):
                    raise DecodeError(f"invalid ip address data: {element.content.hex()}")
                san.ip_addresses.append(ip_address(element.content))
            else:
                raise UnknownTag(element.tag)

        return san


def _raw_string(content: bytes) -> str:
    # UTF-8 where valid, otherwise one character per byte
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return content.decode("latin-1")
