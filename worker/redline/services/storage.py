import logging
from typing import Protocol

from redline.models import DocumentVersion

logger = logging.getLogger(__name__)


class DocumentVersionStore(Protocol):
    def get_document_version(self, version_id: int) -> DocumentVersion | None: ...


class InMemoryDocumentVersionStore:
    def __init__(self) -> None:
        self._versions: dict[int, DocumentVersion] = {}

    def add_document_version(self, version: DocumentVersion) -> DocumentVersion:
        self._versions[version.id] = version
        return version

    def get_document_version(self, version_id: int) -> DocumentVersion | None:
        version = self._versions.get(version_id)
        if version is None:
            logger.info("Document version %s not found", version_id)
        return version
