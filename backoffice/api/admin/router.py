from fastapi import APIRouter
from backoffice.api.admin import auth, users, roles, cms, faq, geo

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["AdminAuth"])
router.include_router(users.router, prefix="/users", tags=["AdminUsers"])
router.include_router(roles.router, prefix="/roles", tags=["AdminRoles"])
router.include_router(cms.router, prefix="/cms", tags=["AdminCms"])
router.include_router(faq.router, prefix="/faq", tags=["AdminFaq"])
router.include_router(geo.router, prefix="/geo", tags=["AdminGeo"])
