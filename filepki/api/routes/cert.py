"""Certificate API endpoints."""

import io

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from filepki.api.dependencies import (
    encode_password,
    get_authority_context,
    get_authority_service,
    password_provider,
)
from filepki.models.certificate import CertificateSummary, IssueRequest
from filepki.services.authority_service import AuthorityContext, AuthorityService
from filepki.services.inspect_service import CertificateInspector
from filepki.services.store_service import ROOT_CA_NAME

router = APIRouter(prefix="/api/certs", tags=["Certificates"])


@router.post("/{name}", response_model=CertificateSummary, status_code=201)
def issue_certificate(
    name: str,
    request: IssueRequest,
    authority_service: AuthorityService = Depends(get_authority_service),
):
    """
    Issue a certificate and its private key under an authority.
    """
    cert = authority_service.issue(
        name,
        request.request,
        issuer_name=request.issuer_name or ROOT_CA_NAME,
        password_provider=password_provider(request.issuer_password),
        password=encode_password(request.key_password),
    )
    return CertificateInspector.summarize(name, cert)


@router.get("/{name}", response_model=CertificateSummary)
def get_certificate(
    name: str,
    context: AuthorityContext = Depends(get_authority_context),
):
    """
    Get the decoded content of a certificate.
    """
    cert = context.cert_service.load_certificate(name)
    return CertificateInspector.summarize(name, cert)


@router.get("/{name}/text", response_class=PlainTextResponse)
def get_certificate_text(
    name: str,
    context: AuthorityContext = Depends(get_authority_context),
):
    """
    Get a human readable rendering of a certificate.
    """
    cert = context.cert_service.load_certificate(name)

    stream = io.StringIO()
    CertificateInspector.print_certificate(cert, stream)
    return stream.getvalue()
