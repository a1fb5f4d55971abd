"""Local image storage with HMAC-signed, expiring download URLs."""

from __future__ import annotations

import hashlib
import hmac
import logging
import mimetypes
import time
import uuid
from pathlib import Path
from typing import Optional

from adscreen import config
from adscreen.models.schemas import StoredFile
from adscreen.services.analysis_store import AnalysisStore
from adscreen.services.submission import ImagePayload

logger = logging.getLogger(__name__)

_EXTENSIONS = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp", "image/gif": ".gif"}


class FileStorage:
    def __init__(
        self,
        store: AnalysisStore,
        upload_dir: Optional[str] = None,
        secret: Optional[str] = None,
        ttl_sec: Optional[int] = None,
    ) -> None:
        self.store = store
        self.upload_dir = Path(upload_dir or config.UPLOAD_DIR)
        self.secret = (secret or config.SIGNED_URL_SECRET).encode("utf-8")
        self.ttl_sec = ttl_sec if ttl_sec is not None else config.SIGNED_URL_TTL_SEC

    def save_image(self, payload: ImagePayload) -> StoredFile:
        file_id = uuid.uuid4().hex
        ext = _EXTENSIONS.get(payload.mime_type) or mimetypes.guess_extension(payload.mime_type) or ".bin"
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.upload_dir / f"{file_id}{ext}"
        path.write_bytes(payload.raw)
        record = StoredFile(id=file_id, path=str(path), mime_type=payload.mime_type)
        self.store.save_file_record(record)
        logger.info("Stored image %s (%d bytes)", file_id, payload.size)
        return record

    def _signature(self, file_id: str, expires: int) -> str:
        message = f"{file_id}:{expires}".encode("utf-8")
        return hmac.new(self.secret, message, hashlib.sha256).hexdigest()

    def sign_file_url(self, file_id: str, now: Optional[float] = None) -> str:
        expires = int(now if now is not None else time.time()) + self.ttl_sec
        return f"/api/files/{file_id}?token={self._signature(file_id, expires)}&expires={expires}"

    def verify_file_token(self, file_id: str, token: str, expires: int, now: Optional[float] = None) -> bool:
        current = now if now is not None else time.time()
        if not token or expires < current:
            return False
        return hmac.compare_digest(self._signature(file_id, expires), token)

    def resolve_file(self, file_id: str) -> Optional[StoredFile]:
        record = self.store.load_file_record(file_id)
        if record is None or not Path(record.path).exists():
            return None
        return record
