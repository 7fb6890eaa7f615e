"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.invitations import invitations_router, organization_invitations_router
from api.v1.routes.organizations import router as organizations_router
from api.v1.routes.users import router as users_router
from api.v1.schemas.common import ErrorResponse

# Every v1 failure shares the error envelope rendered by the exception handlers
router = APIRouter(
    responses={
        code: {"model": ErrorResponse}
        for code in (400, 401, 403, 404, 422, 429)
    },
)
router.include_router(organization_invitations_router)
router.include_router(organizations_router)
router.include_router(invitations_router)
router.include_router(users_router)
