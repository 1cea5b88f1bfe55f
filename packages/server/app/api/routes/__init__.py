"""
API Router

Every route is mounted at the root. Protected routes depend on
``get_auth_context``; the OAuth routes are public. Error bodies share the
``ErrorResponse`` shape and are documented per router.
"""

from fastapi import APIRouter

from illustrious_shared.schemas.common import ErrorResponse

from . import auth, invoices, organizations, reports, users

router = APIRouter()

AUTH_ERRORS = {
    400: {"model": ErrorResponse, "description": "Bad Request"},
    500: {"model": ErrorResponse, "description": "Identity provider failure"},
}

PROTECTED_ERRORS = {
    400: {"model": ErrorResponse, "description": "Bad Request"},
    401: {"model": ErrorResponse, "description": "Missing token or insufficient permissions"},
    404: {"model": ErrorResponse, "description": "Not Found"},
    409: {"model": ErrorResponse, "description": "Conflict"},
}

router.include_router(auth.router, tags=["Authentication"], responses=AUTH_ERRORS)
router.include_router(users.router, tags=["Users"], responses=PROTECTED_ERRORS)
router.include_router(organizations.router, tags=["Organizations"], responses=PROTECTED_ERRORS)
router.include_router(invoices.router, tags=["Invoices"], responses=PROTECTED_ERRORS)
router.include_router(reports.router, tags=["Reports"], responses=PROTECTED_ERRORS)
