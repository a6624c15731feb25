"""Tests for configuration, models and logging setup."""

import logging
from ipaddress import ip_address

import pytest
import yaml
from pydantic import ValidationError

from filepki.models.ca import CertificateRequest, SANEntry, SANType, Subject, SubjectAltName
from filepki.models.certificate import ExtendedKeyUsagePolicy
from filepki.models.config import AppConfig, LoggingSettings, PathSettings
from filepki.services.authority_service import AuthorityContext
from filepki.services.yaml_service import YAMLService
from filepki.utils.logger import log_file_path, log_level, setup_logger


@pytest.mark.unit
class TestYAMLConfig:
    """Test YAML configuration loading."""

    def test_missing_file_uses_defaults(self, pki_data_dir):
        config = YAMLService.load_config(pki_data_dir / "missing.yaml")

        assert config == AppConfig()
        assert config.certificates.validity == 365
        assert config.certificates.subject.common_name == "localhost"
        assert config.paths.pki_data == "./pki-data"

    def test_load_partial_file(self, pki_data_dir):
        """Test that sections missing from the file keep their defaults."""
        path = pki_data_dir / "config.yaml"
        path.write_text(
            "certificates:\n"
            "  validity: 30\n"
            "  eku_policy: omit_for_client\n"
            "  san:\n"
            "    - type: dnsName\n"
            "      value: pki.example.com\n"
        )

        config = YAMLService.load_config(path)

        assert config.certificates.validity == 30
        assert config.certificates.eku_policy == ExtendedKeyUsagePolicy.OMIT_FOR_CLIENT
        assert config.certificates.san == [SANEntry(type=SANType.DNS_NAME, value="pki.example.com")]
        assert config.security.min_password_length == 4

    def test_save_and_load(self, pki_data_dir):
        config = AppConfig()
        config.certificates.eku_policy = ExtendedKeyUsagePolicy.SERVER_ONLY
        path = pki_data_dir / "config.yaml"

        YAMLService.save_config(path, config)

        assert YAMLService.load_config(path) == config
        assert "server_only" in path.read_text()

    def test_invalid_policy(self, pki_data_dir):
        path = pki_data_dir / "config.yaml"
        path.write_text("certificates:\n  eku_policy: everything\n")

        with pytest.raises(ValidationError):
            YAMLService.load_config(path)

    def test_invalid_yaml(self, pki_data_dir):
        path = pki_data_dir / "config.yaml"
        path.write_text("certificates: [\n")

        with pytest.raises(yaml.YAMLError):
            YAMLService.load_config(path)

    def test_context_uses_policy(self, pki_data_dir):
        config = AppConfig()
        config.certificates.eku_policy = ExtendedKeyUsagePolicy.SERVER_ONLY

        context = AuthorityContext(pki_data_dir, config)

        assert context.cert_service.eku_policy == ExtendedKeyUsagePolicy.SERVER_ONLY


@pytest.mark.unit
class TestRequestModels:
    """Test certificate request models."""

    def test_default_request(self):
        request = AppConfig().certificates.to_request()

        assert request.validity == 365
        assert request.san.dns_names == ["localhost"]
        assert request.san.ip_addresses == [ip_address("127.0.0.1"), ip_address("::1")]

    def test_update_from_defaults(self):
        """Test that only unset values are taken from the defaults."""
        defaults = CertificateRequest(
            validity=365,
            subject=Subject(common_name="localhost", organization="Default Org", country="FR"),
            san=SubjectAltName(dns_names=["localhost"]),
        )
        request = CertificateRequest(subject=Subject(common_name="www.example.com", country="US"))

        request.update_from_defaults(defaults)

        assert request.validity == 365
        assert request.subject.common_name == "www.example.com"
        assert request.subject.country == "US"
        assert request.subject.organization == "Default Org"
        assert request.san.dns_names == ["localhost"]

        # The defaults are copied, not shared
        request.san.dns_names.append("other")
        assert defaults.san.dns_names == ["localhost"]

    def test_update_keeps_request_san(self):
        defaults = CertificateRequest(validity=1, san=SubjectAltName(dns_names=["localhost"]))
        request = CertificateRequest(san=SubjectAltName(uris=["https://example.com"]))

        request.update_from_defaults(defaults)

        assert request.san.dns_names == []
        assert request.san.uris == ["https://example.com"]

    @pytest.mark.parametrize("validity", [0, -1, 2**31])
    def test_invalid_validity(self, validity):
        with pytest.raises(ValidationError):
            CertificateRequest(validity=validity)

    def test_invalid_country(self):
        with pytest.raises(ValidationError):
            Subject(common_name="x", country="USA")

    def test_san_entries(self):
        san = SubjectAltName.from_entries(
            [
                SANEntry(type=SANType.URI, value="https://example.com"),
                SANEntry(type=SANType.EMAIL_ADDRESS, value="a@example.com"),
                SANEntry(type=SANType.IP_ADDRESS, value="10.0.0.1"),
                SANEntry(type=SANType.DNS_NAME, value="example.com"),
            ]
        )

        assert san.uris == ["https://example.com"]
        assert san.email_addresses == ["a@example.com"]
        assert san.ip_addresses == [ip_address("10.0.0.1")]
        assert san.dns_names == ["example.com"]

    @pytest.mark.parametrize(
        "entry",
        [
            SANEntry(type=SANType.IP_ADDRESS, value="300.0.0.1"),
            SANEntry(type=SANType.URI, value="not a uri"),
        ],
    )
    def test_invalid_san_entries(self, entry):
        with pytest.raises(ValueError):
            SubjectAltName.from_entries([entry])


@pytest.mark.unit
class TestLogger:
    """Test logging setup."""

    @pytest.fixture(autouse=True)
    def reset_logger(self):
        logger = logging.getLogger("filepki")
        handlers = list(logger.handlers)
        logger.handlers.clear()
        yield
        for handler in logger.handlers:
            handler.close()
        logger.handlers[:] = handlers

    def test_console_handler(self):
        logger = setup_logger(AppConfig())

        assert logger.name == "filepki"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_no_duplicate_handlers(self):
        setup_logger(AppConfig())
        logger = setup_logger(AppConfig())

        assert len(logger.handlers) == 1

    def test_file_handler(self, pki_data_dir):
        log_file = pki_data_dir / "logs" / "filepki.log"
        config = AppConfig(logging=LoggingSettings(level="DEBUG", file=str(log_file)))

        logger = setup_logger(config)
        logger.debug("Loading private key 'root-ca'")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        for handler in logger.handlers:
            handler.flush()
        assert "Loading private key 'root-ca'" in log_file.read_text()

    def test_relative_file_under_logs_dir(self, pki_data_dir):
        logs_dir = pki_data_dir / "logs"
        config = AppConfig(paths=PathSettings(logs=str(logs_dir)), logging=LoggingSettings(file="filepki.log"))

        logger = setup_logger(config)
        logger.info("Created certificate 'server'")

        for handler in logger.handlers:
            handler.flush()
        assert "Created certificate 'server'" in (logs_dir / "filepki.log").read_text()

    def test_no_log_file(self):
        assert log_file_path(AppConfig()) is None

    def test_log_level(self):
        assert log_level(LoggingSettings(level="warning")) == logging.WARNING
        assert log_level(LoggingSettings(level="verbose")) == logging.INFO
