from backend.src.main import health_check, run
from backend.src.pki.api.certificates import generate_certificate, get_public_key, verify_certificate
from backend.src.pki.api.schemas import CamelModel, CertificateResponse, ErrorResponse
from backend.src.pki.domain.models import Certificate
from backend.src.pki.domain.states import LookupPolicy, VerificationStatus
from backend.src.shared.config import Settings
from backend.src.shared.database import get_db

# Pydantic Settings
Settings.model_config
Settings.APP_ENV
Settings._lowercase_choice

# Pydantic schemas
CamelModel.model_config
CertificateResponse.model_config
CertificateResponse._ensure_utc
ErrorResponse.detail

# Domain Models (columns read by SQLAlchemy/Alembic and the response schema)
Certificate.id
Certificate.created_at
Certificate.__table_args__

# Enums
VerificationStatus.INVALID_SIGNATURE
LookupPolicy.FIRST

# FastAPI
health_check
generate_certificate
verify_certificate
get_public_key

# Console script entry point
run

# Database Dependency
get_db
