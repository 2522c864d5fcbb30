"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from master_valley.adapters.http_transform_client import HttpxTransformClient
from master_valley.adapters.openai_transform_client import OpenAIImageTransformClient
from master_valley.adapters.supabase_auth_provider import SupabaseAuthProvider
from master_valley.adapters.supabase_gallery_repository import (
    SupabaseGalleryRepository,
)
from master_valley.config import Settings
from master_valley.services.auth import AuthService
from master_valley.services.catalog import StyleCatalog
from master_valley.services.gallery import GalleryService
from master_valley.services.sessions import SessionRegistry
from master_valley.services.transform import TransformService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog: StyleCatalog
    transform_service: TransformService
    session_registry: SessionRegistry
    auth_service: AuthService
    gallery_service: GalleryService
    close_resources: Callable[[], Awaitable[None]]


def build_transform_client(
    settings: Settings,
) -> OpenAIImageTransformClient | HttpxTransformClient:
    """Create the transform client selected by ``transform_backend``."""
    if settings.transform_backend == "openai":
        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai backend")
        return OpenAIImageTransformClient.create(
            api_key=settings.openai_api_key,
            model=settings.openai_image_model,
            timeout=settings.transform_timeout_seconds,
        )
    if settings.transform_backend == "http":
        if not settings.transform_base_url:
            raise ValueError("TRANSFORM_BASE_URL is required for the http backend")
        return HttpxTransformClient.create(
            base_url=settings.transform_base_url,
            timeout=settings.transform_timeout_seconds,
        )
    raise ValueError(f"Unknown transform backend '{settings.transform_backend}'")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog = StyleCatalog.default()
    transform_client = build_transform_client(resolved_settings)
    transform_service = TransformService(transform_client)
    session_registry = SessionRegistry(
        catalog=catalog,
        transform_service=transform_service,
        max_concurrency=resolved_settings.max_concurrent_jobs,
    )
    auth_service = AuthService(SupabaseAuthProvider(supabase_client))
    gallery_service = GalleryService(
        SupabaseGalleryRepository(
            supabase_client, table=resolved_settings.gallery_table
        )
    )

    async def close_resources() -> None:
        await transform_client.close()

    return AppContainer(
        settings=resolved_settings,
        catalog=catalog,
        transform_service=transform_service,
        session_registry=session_registry,
        auth_service=auth_service,
        gallery_service=gallery_service,
        close_resources=close_resources,
    )
