"""Tests for artifact storage and PEM armor."""

import pytest

from filepki.exceptions import AlreadyExistsError, ArtifactNotFoundError, ParseError
from filepki.services.store_service import ArtifactStore
from filepki.utils.file_utils import FileUtils
from filepki.utils.pem import PEM_CERTIFICATE, PEM_CRL, PEMBlock, decode_pem, encode_pem
from filepki.utils.validators import validate_artifact_name, validate_uri


@pytest.mark.unit
class TestArtifactStore:
    """Test artifact paths and file handling."""

    def test_layout(self, pki_data_dir):
        store = ArtifactStore(pki_data_dir)

        assert store.private_key_path("server") == pki_data_dir / "private-keys" / "server.key"
        assert store.certificate_path("server") == pki_data_dir / "certificates" / "server.cert"
        assert store.crl_path("root-ca") == pki_data_dir / "certificates" / "root-ca.crl"

    @pytest.mark.parametrize("name", ["", " ", "../server", "a/b", "a\\b", ".hidden", "..", "a\x00b"])
    def test_invalid_names(self, pki_data_dir, name):
        """Test that names cannot escape the PKI directory."""
        store = ArtifactStore(pki_data_dir)

        with pytest.raises(ValueError):
            store.certificate_path(name)

    def test_certificate_armor(self, store):
        store.write_certificate("server", b"\x30\x00")

        assert store.certificate_path("server").read_bytes().startswith(b"-----BEGIN CERTIFICATE-----\n")
        assert store.read_certificate("server") == b"\x30\x00"

    def test_certificate_exclusive(self, store):
        store.write_certificate("server", b"\x30\x00")

        with pytest.raises(AlreadyExistsError):
            store.write_certificate("server", b"\x30\x00")

    def test_crl_replaced(self, store):
        store.write_crl("root-ca", b"\x30\x00")
        store.write_crl("root-ca", b"\x30\x01\x00")

        assert store.read_crl("root-ca") == b"\x30\x01\x00"

    def test_missing_artifacts(self, store):
        with pytest.raises(ArtifactNotFoundError):
            store.read_private_key("missing")
        with pytest.raises(ArtifactNotFoundError):
            store.read_certificate("missing")
        with pytest.raises(ArtifactNotFoundError):
            store.read_crl("missing")


@pytest.mark.unit
class TestFileUtils:
    """Test file system utilities."""

    def test_create_file_creates_parents(self, pki_data_dir):
        path = pki_data_dir / "a" / "b" / "file"

        FileUtils.create_file(path, b"data")

        assert path.read_bytes() == b"data"

    def test_create_file_exclusive(self, pki_data_dir):
        path = pki_data_dir / "file"
        FileUtils.create_file(path, b"data")

        with pytest.raises(AlreadyExistsError):
            FileUtils.create_file(path, b"other")

        assert path.read_bytes() == b"data"

    def test_create_or_replace_truncates(self, pki_data_dir):
        path = pki_data_dir / "file"
        FileUtils.create_or_replace_file(path, b"long content")
        FileUtils.create_or_replace_file(path, b"short")

        assert path.read_bytes() == b"short"


@pytest.mark.unit
class TestPEM:
    """Test PEM armor."""

    def test_line_length(self):
        pem_data = encode_pem(PEMBlock(label=PEM_CERTIFICATE, data=bytes(100)))

        lines = pem_data.decode("ascii").splitlines()
        assert lines[0] == "-----BEGIN CERTIFICATE-----"
        assert lines[-1] == "-----END CERTIFICATE-----"
        assert all(len(line) <= 64 for line in lines[1:-1])

    def test_headers(self):
        """Test that Proc-Type is written first and headers parse back."""
        block = PEMBlock(label=PEM_CRL, data=b"abc", headers={"DEK-Info": "AES-256-CBC,00", "Proc-Type": "4,ENCRYPTED"})

        pem_data = encode_pem(block)

        assert pem_data.decode("ascii").splitlines()[1] == "Proc-Type: 4,ENCRYPTED"
        assert decode_pem(pem_data, PEM_CRL) == block

    def test_wrong_label(self):
        pem_data = encode_pem(PEMBlock(label=PEM_CRL, data=b"abc"))

        with pytest.raises(ParseError):
            decode_pem(pem_data, PEM_CERTIFICATE)

    def test_no_block(self):
        with pytest.raises(ParseError, match="no pem block found"):
            decode_pem(b"garbage", PEM_CERTIFICATE)

    def test_invalid_base64(self):
        with pytest.raises(ParseError):
            decode_pem(b"-----BEGIN CERTIFICATE-----\n!!!!\n-----END CERTIFICATE-----\n", PEM_CERTIFICATE)


@pytest.mark.unit
class TestValidators:
    """Test input validation."""

    def test_valid_artifact_name(self):
        assert validate_artifact_name("root-ca") == "root-ca"

    @pytest.mark.parametrize("uri", ["https://example.com", "spiffe://example.com/service", "urn:example:a", "mailto:a@b.c"])
    def test_valid_uri(self, uri):
        assert validate_uri(uri) == uri

    @pytest.mark.parametrize("uri", ["", "example.com", "https://exa mple.com", "http://example.com:99999", "https://a/%zz"])
    def test_invalid_uri(self, uri):
        with pytest.raises(ValueError):
            validate_uri(uri)
