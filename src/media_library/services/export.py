"""ZIP export of every library asset, foldered by category."""

import asyncio
import io
import logging
import zipfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from uuid import UUID

from media_library.domain.categories import normalize_category
from media_library.domain.images import LibraryImage
from media_library.services.assets import AssetFetcher, url_extension

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    """Archive bytes plus what made it in and what did not."""

    archive: bytes
    included: list[str] = field(default_factory=list)
    omitted: list[UUID] = field(default_factory=list)


@dataclass
class ExportPackager:
    """Fetches assets concurrently and packs them into one archive."""

    fetcher: AssetFetcher
    fallback_extension: str = "png"

    async def export_all(self, records: Sequence[LibraryImage]) -> ExportResult:
        """Build an archive; items whose fetch fails are left out."""
        payloads = await asyncio.gather(*(self._fetch(record) for record in records))

        buffer = io.BytesIO()
        included: list[str] = []
        omitted: list[UUID] = []
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for record, data in zip(records, payloads, strict=True):
                if data is None:
                    omitted.append(record.id)
                    continue
                path = unique_path(
                    archive_path(record, self.fallback_extension), included
                )
                archive.writestr(path, data)
                included.append(path)

        logger.info(
            "Library export packaged",
            extra={"included": len(included), "omitted": len(omitted)},
        )
        return ExportResult(
            archive=buffer.getvalue(), included=included, omitted=omitted
        )

    async def _fetch(self, record: LibraryImage) -> bytes | None:
        try:
            return await self.fetcher.fetch(record.image_url)
        except Exception:
            logger.warning(
                "Skipping image in export",
                exc_info=True,
                extra={"image_id": record.id},
            )
            return None


def archive_path(record: LibraryImage, fallback_extension: str) -> str:
    """Return `{category}/{name}.{ext}`, or `{name}.{ext}` without a category."""
    extension = url_extension(record.image_url, fallback_extension)
    filename = f"{_sanitize(record.name)}.{extension}"
    category = normalize_category(record.category)
    if category is None:
        return filename
    return f"{_sanitize(category)}/{filename}"


def unique_path(path: str, taken: Sequence[str]) -> str:
    """Append " (n)" to the file stem until the path is unused."""
    if path not in taken:
        return path
    stem, dot, extension = path.rpartition(".")
    counter = 2
    while True:
        candidate = f"{stem} ({counter}){dot}{extension}"
        if candidate not in taken:
            return candidate
        counter += 1


def _sanitize(value: str) -> str:
    cleaned = value.replace("/", "_").replace("\\", "_").strip()
    if cleaned in {"", ".", ".."}:
        return "image"
    return cleaned
