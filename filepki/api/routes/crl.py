"""CRL API endpoints."""

from fastapi import APIRouter, Depends

from filepki.api.dependencies import get_authority_context, get_authority_service, password_provider
from filepki.models.crl import CRLResponse, RevokeRequest
from filepki.services.authority_service import AuthorityContext, AuthorityService
from filepki.services.store_service import ROOT_CA_NAME

router = APIRouter(prefix="/api", tags=["CRL"])


@router.post("/certs/{name}/revoke", response_model=CRLResponse)
def revoke_certificate(
    name: str,
    request: RevokeRequest,
    authority_service: AuthorityService = Depends(get_authority_service),
):
    """Revoke a certificate and regenerate the CRL of its issuer."""
    issuer_name = request.issuer_name or ROOT_CA_NAME

    authority_service.revoke(
        name,
        issuer_name=issuer_name,
        password_provider=password_provider(request.issuer_password),
    )
    return authority_service.context.crl_service.get_crl_info(issuer_name)


@router.get("/crls/{issuer_name}", response_model=CRLResponse)
def get_crl_info(
    issuer_name: str,
    context: AuthorityContext = Depends(get_authority_context),
):
    """Get CRL information for an issuing authority."""
    return context.crl_service.get_crl_info(issuer_name)
