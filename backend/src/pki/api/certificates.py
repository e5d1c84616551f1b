"""Certificate issuance, verification and public key lookup endpoints."""

import logging

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from pki.api.schemas import (
    CertificateResponse,
    ErrorResponse,
    IdentityRequest,
    IssueCertificateResponse,
    PublicKeyRequest,
    PublicKeyResponse,
    VerifyCertificateResponse,
)
from pki.ca.signing import CertificateSigner
from pki.services.errors import (
    ExpiredError,
    InvalidSignatureError,
    NotFoundError,
    PKIError,
    StorageError,
    ValidationError,
)
from pki.services.issuer import CertificateIssuer
from pki.services.verifier import CertificateVerifier
from shared.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["certificates"])


class APIError(Exception):
    """Error already mapped to an HTTP status and client-facing message."""

    def __init__(self, status_code: int, message: str, code: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


def _error_response(status_code: int, message: str, code: str, detail: str | None = None):
    body = ErrorResponse(error=message, code=code, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    """Render API errors and malformed bodies as ErrorResponse JSON."""

    @app.exception_handler(APIError)
    async def _api_error(request: Request, exc: APIError) -> JSONResponse:
        return _error_response(exc.status_code, exc.message, exc.code)

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(
            status.HTTP_400_BAD_REQUEST, "Invalid request body", "invalid_request"
        )


# =============================================================================
# Dependencies
# =============================================================================


def get_signer(request: Request) -> CertificateSigner:
    """Signer created at startup and kept on app.state."""
    return request.app.state.signer


def get_issuer(
    db: AsyncSession = Depends(get_db),
    signer: CertificateSigner = Depends(get_signer),
) -> CertificateIssuer:
    return CertificateIssuer(db, signer)


def get_verifier(
    db: AsyncSession = Depends(get_db),
    signer: CertificateSigner = Depends(get_signer),
) -> CertificateVerifier:
    return CertificateVerifier(db, signer)


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/generate-certificate", response_model=IssueCertificateResponse)
async def generate_certificate(
    body: IdentityRequest,
    issuer: CertificateIssuer = Depends(get_issuer),
) -> IssueCertificateResponse:
    """
    Issue a certificate and return it with its private key.

    - Returns: 200 with {message, certificate, privateKey}
    - Errors: 400 missing fields, 500 internal
    """
    try:
        issued = await issuer.issue(body.user_id, body.email)
    except ValidationError as e:
        raise APIError(status.HTTP_400_BAD_REQUEST, str(e), e.code) from None
    except PKIError as e:
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Certificate generation failed", e.code
        ) from None
    except Exception as e:
        logger.exception("certificate_generation_error", extra={"error": str(e)})
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Certificate generation failed", "internal_error"
        ) from None

    return IssueCertificateResponse(
        message="Certificate generated successfully",
        certificate=CertificateResponse.model_validate(issued.certificate),
        private_key=issued.private_key,
    )


@router.post("/verify-certificate", response_model=VerifyCertificateResponse)
async def verify_certificate(
    body: IdentityRequest,
    verifier: CertificateVerifier = Depends(get_verifier),
) -> VerifyCertificateResponse:
    """
    Verify the certificate issued to an identity.

    - Returns: 200 with {valid: true, certificate}
    - Errors: 400 missing fields, 404 not found, 401 expired or bad signature, 500
    """
    try:
        result = await verifier.verify(body.user_id, body.email)
        certificate = result.raise_for_status()
    except ValidationError as e:
        raise APIError(status.HTTP_400_BAD_REQUEST, str(e), e.code) from None
    except NotFoundError as e:
        raise APIError(status.HTTP_404_NOT_FOUND, str(e), e.code) from None
    except (ExpiredError, InvalidSignatureError) as e:
        raise APIError(status.HTTP_401_UNAUTHORIZED, str(e), e.code) from None
    except StorageError as e:
        logger.error("certificate_verification_store_error", extra={"error": str(e)})
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error", e.code
        ) from None
    except Exception as e:
        logger.exception("certificate_verification_error", extra={"error": str(e)})
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred",
            "internal_error",
        ) from None

    return VerifyCertificateResponse(
        valid=True,
        certificate=CertificateResponse.model_validate(certificate),
    )


@router.post("/get-public-key", response_model=PublicKeyResponse)
async def get_public_key(
    body: PublicKeyRequest,
    verifier: CertificateVerifier = Depends(get_verifier),
) -> PublicKeyResponse:
    """
    Fetch the public key bound to a user.

    - Returns: 200 with {publicKey}
    - Errors: 400 missing field, 404 not found, 500 internal
    """
    try:
        public_key = await verifier.get_public_key(body.user_id)
    except ValidationError as e:
        raise APIError(status.HTTP_400_BAD_REQUEST, str(e), e.code) from None
    except NotFoundError as e:
        raise APIError(status.HTTP_404_NOT_FOUND, str(e), e.code) from None
    except Exception as e:
        logger.exception("public_key_lookup_error", extra={"error": str(e)})
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to fetch public key",
            getattr(e, "code", "internal_error"),
        ) from None

    return PublicKeyResponse(public_key=public_key)
