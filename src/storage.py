import logging
from pathlib import Path
from starlette.concurrency import run_in_threadpool

from config import MEDIA_DIR, MEDIA_URL

logger = logging.getLogger(__name__)


class LocalBlobStore:
    """Blob store backed by a directory served as static files."""

    def __init__(self, root: Path = MEDIA_DIR, base_url: str = MEDIA_URL):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"blob path escapes the store: {path!r}")
        return target

    def download_url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        target = self._resolve(path)
        await run_in_threadpool(target.parent.mkdir, parents=True, exist_ok=True)
        await run_in_threadpool(target.write_bytes, data)
        logger.info("Stored %d bytes (%s) at %s", len(data), content_type, path)
        return self.download_url(path)
