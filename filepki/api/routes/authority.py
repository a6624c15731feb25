"""Root authority API endpoints."""

from fastapi import APIRouter, Depends

from filepki.api.dependencies import encode_password, get_authority_service
from filepki.models.certificate import CertificateSummary, RootRequest
from filepki.services.authority_service import AuthorityService
from filepki.services.inspect_service import CertificateInspector
from filepki.services.store_service import ROOT_CA_NAME

router = APIRouter(prefix="/api", tags=["Authority"])


@router.post("/root", response_model=CertificateSummary, status_code=201)
def bootstrap_root(
    request: RootRequest,
    authority_service: AuthorityService = Depends(get_authority_service),
):
    """
    Create the root authority key, certificate and CRL.
    """
    cert = authority_service.bootstrap_root(request.request, password=encode_password(request.password))
    return CertificateInspector.summarize(ROOT_CA_NAME, cert)
