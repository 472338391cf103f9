"""
Upload of the images F+MG+E downloaded, deduplicated by source URL.

F+MG+E writes a ``google-plus-image-list.csv`` (``;`` separated) describing
every image it downloaded::

    URL;IsDownloaded;FileName;FilePath;FileSize

Only URLs listed there can be uploaded; every other link stays a plain link.
Each URL is uploaded at most once per run no matter how many posts reference
it, and its declared size counts once towards :attr:`AssetManager.total_bytes`.
"""

from __future__ import annotations

import html
import os
from typing import Callable, Dict, Iterable, Optional

import pandas as pd

from gplus_import.models.records import ManifestEntry, UploadHandle, UploadRecord
from .errors import MissingInputFileError

Uploader = Callable[[ManifestEntry], UploadHandle]


def load_manifest(paths: Iterable[str]) -> Dict[str, ManifestEntry]:
    """Read one or more image list CSVs into a URL → entry map.

    Columns are taken by position, the exporter's header names are not relied on.
    Later files win for a URL listed twice.
    """
    manifest: Dict[str, ManifestEntry] = {}
    for path in paths:
        if not os.path.exists(path):
            raise MissingInputFileError(path)
        df = pd.read_csv(path, sep=";", dtype=str, keep_default_na=False)
        for row in df.itertuples(index=False):
            url = row[0]
            if not url:
                continue
            manifest[url] = ManifestEntry(
                url=url,
                filename=row[2] if len(row) > 2 else "",
                filepath=row[3] if len(row) > 3 else "",
                filesize=row[4] if len(row) > 4 else 0,
            )
    return manifest


def embedded_image_html(handle: UploadHandle) -> str:
    src = html.escape(handle.url, quote=True)
    alt = html.escape(handle.original_filename or "", quote=True)
    size = ""
    if handle.width and handle.height:
        size = f' width="{handle.width}" height="{handle.height}"'
    return f'<img src="{src}" alt="{alt}"{size}>'


class AssetManager:
    def __init__(
        self,
        manifest: Optional[Dict[str, ManifestEntry]] = None,
        *,
        uploader: Optional[Uploader] = None,
        audit_path: Optional[str] = None,
        dry_run: bool = False,
    ) -> None:
        self.manifest: Dict[str, ManifestEntry] = dict(manifest or {})
        self.uploader = uploader
        self.audit_path = audit_path
        self.dry_run = dry_run
        self.uploaded: Dict[str, UploadRecord] = {}
        self.total_bytes = 0
        if audit_path:
            self.open_audit(audit_path)

    def open_audit(self, path: str) -> None:
        """Start a fresh list of uploaded file paths at ``path``."""
        self.audit_path = path
        with open(path, "w", encoding="utf-8"):
            pass

    def _audit(self, entry: ManifestEntry) -> None:
        if not self.audit_path:
            return
        with open(self.audit_path, "a", encoding="utf-8") as f:
            f.write(f"{entry.filepath}\n")

    def _upload(self, entry: ManifestEntry) -> UploadHandle:
        if self.dry_run or self.uploader is None:
            return UploadHandle(url=f"dry-run://{entry.filename or entry.url}", original_filename=entry.filename)
        return self.uploader(entry)

    def upload(self, url: str) -> UploadRecord:
        """Upload the manifest entry for ``url`` unless it was uploaded already."""
        record = self.uploaded.get(url)
        if record is not None:
            return record
        entry = self.manifest[url]
        self._audit(entry)
        handle = self._upload(entry)
        record = UploadRecord(source_url=url, handle=handle, byte_size=entry.filesize)
        self.total_bytes += entry.filesize
        self.uploaded[url] = record
        return record

    def resolve_or_upload(self, url: str, display_text: Optional[str] = None) -> str:
        if display_text and display_text in self.manifest:
            # F+MG+E provides the URL it downloaded in the text slot; the
            # plus URL will disappear anyway
            url = display_text
        if url in self.uploaded or url in self.manifest:
            return f"\n{embedded_image_html(self.upload(url).handle)}"
        # Leave the URL bare and the forum will onebox it.  Where the text
        # differs, it is Google's own interpolation, which does not look good
        # on the forum, so it is dropped.
        return url
