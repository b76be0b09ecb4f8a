"""FastAPI dependencies shared by the routers."""

from typing import Optional

from fastapi import Header, Request

from filehost_api.auth import CredentialVerifier
from filehost_api.db_layer.file_service import FileService


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


def get_caller_identity(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer credential"),
) -> str:
    """Resolve the caller identity from the Authorization header or raise UnauthenticatedError."""
    verifier: CredentialVerifier = request.app.state.credential_verifier
    return verifier.verify_header(authorization)
