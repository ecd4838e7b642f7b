from __future__ import annotations

from fastapi import APIRouter, Depends

from moodbite_auth.api.deps import require_session
from moodbite_auth.api.schemas.session import PortalViewResponse
from moodbite_auth.application.use_cases.access_guard import PROTECTED_ROUTES
from moodbite_auth.domain.entities.session import Identity


router = APIRouter()


def _add_portal_view(path: str, role: str) -> None:
    view = path.strip("/").replace("/", "_") or "home"

    async def _view(identity: Identity = Depends(require_session(role))) -> PortalViewResponse:
        return PortalViewResponse(role=role, view=view, identity=identity)

    router.add_api_route(
        path,
        _view,
        methods=["GET"],
        response_model=PortalViewResponse,
        name=f"portal_{view}",
    )


for _path, _role in PROTECTED_ROUTES.items():
    _add_portal_view(_path, _role)
