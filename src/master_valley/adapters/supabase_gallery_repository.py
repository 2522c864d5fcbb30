"""Supabase-backed gallery repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from master_valley.services.gallery import GalleryRepository


@dataclass
class SupabaseGalleryRepository(GalleryRepository):
    """Supabase implementation for saved result snapshots."""

    client: Client
    table: str = "gallery_items"

    def save_result(
        self, user_id: str, style_id: str, mode: str, items: list[dict[str, object]]
    ) -> UUID:
        """Insert a gallery row and return its id."""
        response = (
            self.client.table(self.table)
            .insert(
                {
                    "user_id": user_id,
                    "style_id": style_id,
                    "mode": mode,
                    "items_json": items,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save gallery item")
        return UUID(response.data[0]["id"])
