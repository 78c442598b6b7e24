"""FastAPI application exposing the My Desk Remote Store."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, Header, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import Principal, Role, ensure_role, resolve_principal
from .config import ServerSettings, load_server_settings
from .exceptions import MyDeskError, NotFoundError
from .models import RegisterKind
from .remote_store import RemoteStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[ServerSettings] = None, store: Optional[RemoteStore] = None
) -> FastAPI:
    settings = settings or load_server_settings()
    store = store or RemoteStore(settings.data_dir, settings.inward_dir, settings.outward_dir)

    app = FastAPI(title="My Desk API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MyDeskError)
    async def domain_error_handler(request: Request, exc: MyDeskError) -> JSONResponse:
        logger.info(
            "%s %s rejected with %s: %s", request.method, request.url.path, exc.status_code, exc
        )
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def request_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid request body"}
        )

    async def current_principal(authorization: Optional[str] = Header(None)) -> Principal:
        return resolve_principal(authorization, settings.api_tokens)

    def require(role: Role) -> Callable[..., Principal]:
        async def dependency(principal: Principal = Depends(current_principal)) -> Principal:
            ensure_role(principal, role)
            return principal

        return dependency

    staff = Depends(require(Role.STAFF))
    incharge = Depends(require(Role.INCHARGE))

    def get_store() -> RemoteStore:
        return store

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/me")
    async def me(principal: Principal = staff) -> dict[str, str]:
        return {"role": principal.role.value}

    # region Registers
    def register_routes(kind: RegisterKind) -> None:
        base = f"/api/{kind.value}"

        @app.get(base, dependencies=[staff], name=f"list_{kind.value}")
        async def list_entries(svc: RemoteStore = Depends(get_store)) -> List[Dict[str, Any]]:
            return svc.list_register(kind)

        @app.post(base, dependencies=[staff], name=f"create_{kind.value}")
        async def create_entry(
            payload: Any = Body(None), svc: RemoteStore = Depends(get_store)
        ) -> Dict[str, Any]:
            return svc.create_register_entry(kind, payload)

        @app.put(f"{base}/{{entry_id}}", dependencies=[staff], name=f"update_{kind.value}")
        async def update_entry(
            entry_id: str, payload: Any = Body(None), svc: RemoteStore = Depends(get_store)
        ) -> Dict[str, Any]:
            return svc.update_register_entry(kind, entry_id, payload)

        @app.delete(f"{base}/{{entry_id}}", dependencies=[incharge], name=f"delete_{kind.value}")
        async def delete_entry(
            entry_id: str, svc: RemoteStore = Depends(get_store)
        ) -> dict[str, bool]:
            svc.delete_register_entry(kind, entry_id)
            return {"ok": True}

    for kind in RegisterKind:
        register_routes(kind)

    @app.get("/files/{register}/{name}")
    async def get_attachment(
        register: RegisterKind, name: str, svc: RemoteStore = Depends(get_store)
    ) -> FileResponse:
        path = svc.attachment_path(register, name)
        if path is None:
            raise NotFoundError("Not found")
        return FileResponse(path)

    # endregion

    # region Attendance
    @app.get("/api/attendance", dependencies=[staff])
    async def get_attendance(svc: RemoteStore = Depends(get_store)) -> Dict[str, Any]:
        return svc.get_attendance()

    @app.post("/api/attendance", dependencies=[staff])
    async def upsert_attendance(
        payload: Any = Body(None), svc: RemoteStore = Depends(get_store)
    ) -> Dict[str, Any]:
        body = payload if isinstance(payload, dict) else {}
        return svc.upsert_attendance(body.get("date"), body.get("record"))

    # endregion

    # region Tasks
    @app.get("/api/tasks", dependencies=[staff])
    async def list_tasks(svc: RemoteStore = Depends(get_store)) -> List[Dict[str, Any]]:
        return svc.list_tasks()

    @app.post("/api/tasks", dependencies=[staff])
    async def create_task(
        payload: Any = Body(None), svc: RemoteStore = Depends(get_store)
    ) -> Dict[str, Any]:
        return svc.create_task(payload)

    @app.put("/api/tasks/{task_id}", dependencies=[staff])
    async def update_task(
        task_id: str, payload: Any = Body(None), svc: RemoteStore = Depends(get_store)
    ) -> Dict[str, Any]:
        return svc.update_task(task_id, payload)

    @app.delete("/api/tasks/{task_id}", dependencies=[incharge])
    async def delete_task(task_id: str, svc: RemoteStore = Depends(get_store)) -> dict[str, bool]:
        svc.delete_task(task_id)
        return {"ok": True}

    # endregion

    # region Profile & offices
    @app.get("/api/profile", dependencies=[staff])
    async def get_profile(svc: RemoteStore = Depends(get_store)) -> Dict[str, Any]:
        return svc.get_profile()

    @app.put("/api/profile", dependencies=[staff])
    async def save_profile(
        payload: Any = Body(None), svc: RemoteStore = Depends(get_store)
    ) -> Dict[str, Any]:
        return svc.save_profile(payload)

    @app.get("/api/offices", dependencies=[staff])
    async def get_offices(svc: RemoteStore = Depends(get_store)) -> List[str]:
        return svc.get_offices()

    @app.put("/api/offices", dependencies=[incharge])
    async def save_offices(
        payload: Any = Body(None), svc: RemoteStore = Depends(get_store)
    ) -> List[str]:
        return svc.save_offices(payload)

    # endregion

    return app


__all__ = ["create_app"]
