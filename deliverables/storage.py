"""File storage for deliverables.

Thin wrapper around Django's storage API so the backend (local filesystem by
default, any django-storages backend through settings) can be swapped without
touching the review workflow. Handles are storage names; URLs come from the
backend.
"""

import logging
import os
import uuid
from dataclasses import dataclass

from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredFile:
    url: str
    handle: str


def _deliverable_upload_path(order_id: int, filename: str) -> str:
    base, ext = os.path.splitext(os.path.basename(filename or ""))
    return f"deliverables/{order_id}/{uuid.uuid4().hex}-{base or 'file'}{ext.lower()}"


class DeliverableStorage:
    def __init__(self, storage=None):
        self._storage = storage

    @property
    def storage(self):
        return self._storage if self._storage is not None else default_storage

    def put(self, order_id: int, upload) -> StoredFile:
        path = _deliverable_upload_path(order_id, getattr(upload, "name", "file"))
        handle = self.storage.save(path, upload)
        logger.info("Stored deliverable file %s", handle)
        return StoredFile(url=self.storage.url(handle), handle=handle)

    def delete(self, handle: str) -> None:
        """Remove a stored file; a missing file or backend error is only logged."""
        if not handle:
            return
        try:
            self.storage.delete(handle)
        except Exception:
            logger.exception("Could not delete deliverable file %s", handle)
        else:
            logger.info("Deleted deliverable file %s", handle)

    def open(self, handle: str):
        return self.storage.open(handle, "rb")

    def exists(self, handle: str) -> bool:
        return bool(handle) and self.storage.exists(handle)


deliverable_storage = DeliverableStorage()
