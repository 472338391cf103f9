"""
State shared by every post of an import run.

The identity cache, the upload cache and the uploaded byte total all live
here, on one object owned by the migration tool, and are never reset during a
run (also not between export files), so deduplication spans the whole run.
The object is what the renderer receives as its ``context``.
"""

from __future__ import annotations

from typing import Optional

from gplus_import.utils.assets import AssetManager
from gplus_import.utils.identities import IdentityResolver


class ImportContext:
    def __init__(
        self,
        identities: Optional[IdentityResolver] = None,
        assets: Optional[AssetManager] = None,
        *,
        permissive: bool = False,
    ) -> None:
        self.identities = identities or IdentityResolver()
        self.assets = assets or AssetManager()
        self.permissive = permissive

    def resolve_mention(self, user_id: str) -> Optional[str]:
        return self.identities.resolve_handle(user_id)

    def resolve_or_upload_image(self, url: str, text: str) -> str:
        return self.assets.resolve_or_upload(url, text)

    @property
    def total_bytes(self) -> int:
        return self.assets.total_bytes
