"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import (
    Depends,
    FastAPI,
    Header,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import JSONResponse

from master_valley.api.admin import router as admin_router
from master_valley.api.models import (
    CategoryChoice,
    FocusRequest,
    NoteRequest,
    StyleChoice,
)
from master_valley.app_logging import configure_logging
from master_valley.containers import AppContainer
from master_valley.domain.auth import AuthUser
from master_valley.domain.errors import (
    DuplicateRetryError,
    InvalidPhotoError,
    InvalidStyleError,
    NotAuthorizedError,
    SelectionError,
    UnknownCategoryError,
    UnknownKeyError,
    UnknownStyleError,
)
from master_valley.domain.photos import Photo
from master_valley.services.workflow import WorkflowSession

_ERROR_STATUS: dict[type[Exception], int] = {
    SelectionError: status.HTTP_409_CONFLICT,
    UnknownCategoryError: status.HTTP_404_NOT_FOUND,
    UnknownStyleError: status.HTTP_404_NOT_FOUND,
    InvalidPhotoError: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    UnknownKeyError: status.HTTP_404_NOT_FOUND,
    InvalidStyleError: status.HTTP_422_UNPROCESSABLE_CONTENT,
}


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def require_user(
    request: Request, authorization: str | None = Header(default=None)
) -> AuthUser:
    """Resolve the bearer token to an authenticated user."""
    container: AppContainer = request.app.state.container
    try:
        return container.auth_service.authorize(_bearer_token(authorization))
    except NotAuthorizedError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from exc


def _session(request: Request, user: AuthUser) -> WorkflowSession:
    container: AppContainer = request.app.state.container
    return container.session_registry.get_or_create(user.id)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    async def workflow_error(request: Request, exc: Exception) -> JSONResponse:
        status_code = next(
            (
                _ERROR_STATUS[cls]
                for cls in type(exc).__mro__
                if cls in _ERROR_STATUS
            ),
            status.HTTP_400_BAD_REQUEST,
        )
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    for error_type in (SelectionError, UnknownKeyError, InvalidStyleError):
        app.add_exception_handler(error_type, workflow_error)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/categories")
    async def categories(request: Request) -> dict[str, object]:
        """Return the style catalog."""
        state_container: AppContainer = request.app.state.container
        return {"categories": state_container.catalog.to_dict()}

    @app.get("/session")
    async def get_session(
        request: Request, user: AuthUser = Depends(require_user)
    ) -> dict[str, object]:
        """Return the caller's workflow session."""
        return _session(request, user).to_dict()

    @app.post("/session/category")
    async def select_category(
        choice: CategoryChoice,
        request: Request,
        user: AuthUser = Depends(require_user),
    ) -> dict[str, object]:
        """Choose a category and move on to photo and style selection."""
        session = _session(request, user)
        session.select_category(choice.category_id)
        return session.to_dict()

    @app.post("/session/photo")
    async def upload_photo(
        photo: UploadFile,
        request: Request,
        wait: bool = True,
        user: AuthUser = Depends(require_user),
    ) -> dict[str, object]:
        """Store the uploaded photo; starts processing once a style is chosen."""
        session = _session(request, user)
        content = await photo.read()
        session.set_photo(
            Photo.from_upload(content, photo.content_type, photo.filename)
        )
        if wait:
            await session.wait_idle(current_only=True)
        return session.to_dict()

    @app.post("/session/style")
    async def select_style(
        choice: StyleChoice,
        request: Request,
        wait: bool = True,
        user: AuthUser = Depends(require_user),
    ) -> dict[str, object]:
        """Choose a style; starts processing once a photo is uploaded."""
        session = _session(request, user)
        session.set_style(choice.style_id)
        if wait:
            await session.wait_idle(current_only=True)
        return session.to_dict()

    @app.post("/session/back")
    async def back(
        request: Request, user: AuthUser = Depends(require_user)
    ) -> dict[str, object]:
        """Return from photo and style selection to the category list."""
        session = _session(request, user)
        session.back()
        return session.to_dict()

    @app.post("/session/reset")
    async def reset(
        request: Request, user: AuthUser = Depends(require_user)
    ) -> dict[str, object]:
        """Start over, discarding any results still in flight."""
        session = _session(request, user)
        session.reset()
        return session.to_dict()

    @app.post("/session/retry/{key}")
    async def retry(
        key: str,
        request: Request,
        wait: bool = True,
        user: AuthUser = Depends(require_user),
    ) -> JSONResponse:
        """Re-run one result by key."""
        session = _session(request, user)
        try:
            task = session.start_retry(key)
        except DuplicateRetryError:
            return JSONResponse(
                status_code=status.HTTP_202_ACCEPTED,
                content={"status": "already_retrying", "key": key},
            )
        if wait:
            await asyncio.shield(task)
            return JSONResponse(content=session.to_dict())
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED, content=session.to_dict()
        )

    @app.post("/session/notes/{key}")
    async def add_note(
        key: str,
        body: NoteRequest,
        request: Request,
        user: AuthUser = Depends(require_user),
    ) -> dict[str, object]:
        """Attach a chat note to one result."""
        session = _session(request, user)
        session.annotate(key, body.note)
        return {"key": key, "notes": session.aggregate.notes(key)}

    @app.post("/session/focus")
    async def focus(
        body: FocusRequest,
        request: Request,
        user: AuthUser = Depends(require_user),
    ) -> dict[str, object]:
        """Move the result cursor to another entry."""
        session = _session(request, user)
        job = session.focus(body.index)
        return {"current_index": session.current_index, "job": job.to_dict()}

    @app.post("/session/gallery")
    async def save_to_gallery(
        request: Request, user: AuthUser = Depends(require_user)
    ) -> dict[str, str]:
        """Save the current results to the user's gallery."""
        state_container: AppContainer = request.app.state.container
        session = _session(request, user)
        item_id = state_container.gallery_service.save(user.id, session)
        return {"id": str(item_id)}

    @app.post("/auth/logout")
    async def logout(
        request: Request,
        authorization: str | None = Header(default=None),
        user: AuthUser = Depends(require_user),
    ) -> dict[str, str]:
        """Sign out and drop the caller's workflow session."""
        state_container: AppContainer = request.app.state.container
        token = _bearer_token(authorization)
        try:
            state_container.auth_service.sign_out(token)
        except Exception:
            logger.exception("Failed to sign out user %s", user.id)
        state_container.session_registry.end(user.id)
        return {"status": "ok"}

    return app
