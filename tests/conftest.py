"""Pytest configuration and shared fixtures."""

import shutil
import tempfile
from datetime import datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from filepki.models.ca import CertificateRequest, Subject
from filepki.models.config import AppConfig
from filepki.services.authority_service import AuthorityContext, AuthorityService

ROOT_PASSWORD = b"correct-password"
WRONG_PASSWORD = b"wrong-password"


@pytest.fixture(scope="session")
def test_data_dir():
    """Create a temporary directory for test data."""
    temp_dir = tempfile.mkdtemp(prefix="filepki_test_")
    yield Path(temp_dir)
    # Cleanup
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def pki_data_dir(test_data_dir):
    """Create a fresh PKI data directory for each test."""
    pki_dir = test_data_dir / f"pki_data_{datetime.now().timestamp()}"
    pki_dir.mkdir(parents=True, exist_ok=True)
    yield pki_dir
    # Cleanup after test
    if pki_dir.exists():
        shutil.rmtree(pki_dir, ignore_errors=True)


@pytest.fixture
def config():
    """Default application configuration."""
    return AppConfig()


@pytest.fixture
def authority_context(pki_data_dir, config):
    """Create authority context with test directory."""
    return AuthorityContext(pki_data_dir, config)


@pytest.fixture
def store(authority_context):
    return authority_context.store


@pytest.fixture
def key_service(authority_context):
    return authority_context.key_service


@pytest.fixture
def cert_service(authority_context):
    return authority_context.cert_service


@pytest.fixture
def crl_service(authority_context):
    return authority_context.crl_service


@pytest.fixture
def authority_service(authority_context):
    return AuthorityService(authority_context)


@pytest.fixture
def root_password():
    return ROOT_PASSWORD


@pytest.fixture
def wrong_password():
    return WRONG_PASSWORD


@pytest.fixture
def root_password_provider():
    """Password provider returning the root key password."""
    return lambda: ROOT_PASSWORD


@pytest.fixture
def sample_root_subject():
    """Create a sample root subject."""
    return Subject(common_name="Test Root CA", organization="Test Organization", country="US")


@pytest.fixture
def sample_root_request(sample_root_subject):
    """Create a sample root certificate request."""
    return CertificateRequest(validity=3650, subject=sample_root_subject)


@pytest.fixture
def sample_cert_request():
    """Create a sample server certificate request."""
    return CertificateRequest(
        validity=365,
        subject=Subject(common_name="test.example.com", organization="Test Organization", country="US"),
    )


@pytest.fixture
def created_root(authority_service, sample_root_request):
    """Bootstrap a root authority with an encrypted key and return its certificate."""
    return authority_service.bootstrap_root(sample_root_request, password=ROOT_PASSWORD)


@pytest.fixture
def client(pki_data_dir, config):
    """Create FastAPI test client with isolated test directory."""
    from filepki.api.dependencies import get_config, get_pki_data_dir
    from main import app

    # Override dependencies to use test directory
    def override_pki_data_dir():
        return pki_data_dir

    def override_config():
        return config

    app.dependency_overrides[get_pki_data_dir] = override_pki_data_dir
    app.dependency_overrides[get_config] = override_config

    client = TestClient(app)
    yield client

    # Clean up
    app.dependency_overrides.clear()
