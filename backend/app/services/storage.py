"""
Armazenamento dos arquivos enviados (licenças emitidas, boletos, notas).

Os arquivos ficam em disco sob UPLOAD_DIR e são servidos pela aplicação em
UPLOAD_URL_PREFIX. A URL devolvida por ``save`` é a que vai para as tags
``UF:url`` de ``state_files``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from app.core.config import settings
from app.core.errors import ValidationError
from app.services.licences.utils import slugify

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
}


@dataclass
class DocumentUpload:
    content: bytes
    filename: str
    content_type: str | None = None


class BlobStore(Protocol):
    def save(self, upload: DocumentUpload, *, folder_parts: Sequence[str]) -> str:
        ...

    def delete(self, url: str) -> None:
        ...


def _safe_filename(filename: str) -> str:
    path = Path(filename or "arquivo")
    stem = slugify(path.stem, max_length=80)
    suffix = "".join(ch for ch in path.suffix.lower() if ch.isalnum() or ch == ".")[:10]
    return f"{stem}{suffix}"


class LocalBlobStore:
    def __init__(self, base_dir: str | Path, url_prefix: str, max_bytes: int | None = None) -> None:
        self.base_dir = Path(base_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    def save(self, upload: DocumentUpload, *, folder_parts: Sequence[str]) -> str:
        if not upload.content:
            raise ValidationError("Arquivo vazio")
        if self.max_bytes is not None and len(upload.content) > self.max_bytes:
            raise ValidationError(f"Arquivo maior que {self.max_bytes // (1024 * 1024)} MB")
        if upload.content_type and upload.content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(f"Tipo de arquivo não permitido: {upload.content_type}")

        relative_dir = Path(*[slugify(part) for part in folder_parts])
        target_dir = self.base_dir / relative_dir
        target_dir.mkdir(parents=True, exist_ok=True)

        filename = _safe_filename(upload.filename)
        target = target_dir / filename
        counter = 1
        while target.exists():
            target = target_dir / f"{Path(filename).stem}-{counter}{Path(filename).suffix}"
            counter += 1

        target.write_bytes(upload.content)
        url = f"{self.url_prefix}/{relative_dir.as_posix()}/{target.name}"
        logger.info("blob_saved path=%s size=%s", target, len(upload.content))
        return url

    def delete(self, url: str) -> None:
        """Remove o arquivo de uma URL devolvida por ``save``; ausente é ignorado."""
        prefix = f"{self.url_prefix}/"
        if not url.startswith(prefix):
            raise ValidationError(f"URL fora do armazenamento: {url}")
        target = (self.base_dir / url[len(prefix):]).resolve()
        if self.base_dir.resolve() not in target.parents:
            raise ValidationError(f"URL fora do armazenamento: {url}")
        target.unlink(missing_ok=True)
        logger.info("blob_deleted path=%s", target)


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(
        settings.UPLOAD_DIR,
        settings.UPLOAD_URL_PREFIX,
        max_bytes=settings.MAX_UPLOAD_MB * 1024 * 1024,
    )
