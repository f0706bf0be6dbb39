"""
Document storage for shop records
Collections of JSON documents ("customers", "bills") keyed by id
"""

import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional

from ..config.settings import Settings, get_settings
from ..exceptions import StorageError

logger = logging.getLogger(__name__)

CUSTOMERS = "customers"
BILLS = "bills"


class CloudStorageBackend(ABC):
    """Abstract base class for document storage backends"""

    name = "abstract"

    @abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Get one document (with its id) or None"""
        pass

    @abstractmethod
    async def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        """List every document of a collection"""
        pass

    @abstractmethod
    async def add_document(self, collection: str, data: Dict[str, Any]) -> str:
        """Add a document and return its new id"""
        pass

    @abstractmethod
    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        """Overwrite the given top-level fields; False when the document does not exist"""
        pass


class LocalFileBackend(CloudStorageBackend):
    """Local filesystem backend (for development only), one JSON file per collection"""

    name = "local"

    def __init__(self, data_directory: str = "./shop_data"):
        self.data_directory = data_directory
        os.makedirs(data_directory, exist_ok=True)

    def _get_file_path(self, collection: str) -> str:
        return os.path.join(self.data_directory, f"{collection}.json")

    def _load(self, collection: str) -> Dict[str, Dict[str, Any]]:
        file_path = self._get_file_path(collection)
        if not os.path.exists(file_path):
            return {}
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"❌ Error reading {collection} locally: {e}")
            raise StorageError(f"Failed to read {collection}: {e}") from e

    def _save(self, collection: str, documents: Dict[str, Dict[str, Any]]) -> None:
        file_path = self._get_file_path(collection)
        try:
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(documents, f, indent=2, default=str)
        except OSError as e:
            logger.error(f"❌ Error writing {collection} locally: {e}")
            raise StorageError(f"Failed to write {collection}: {e}") from e

    async def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        data = self._load(collection).get(doc_id)
        if data is None:
            return None
        return {"id": doc_id, **data}

    async def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        return [{"id": doc_id, **data} for doc_id, data in self._load(collection).items()]

    async def add_document(self, collection: str, data: Dict[str, Any]) -> str:
        documents = self._load(collection)
        doc_id = uuid.uuid4().hex
        documents[doc_id] = {k: v for k, v in data.items() if k != "id"}
        self._save(collection, documents)
        return doc_id

    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        documents = self._load(collection)
        if doc_id not in documents:
            return False
        documents[doc_id].update(fields)
        self._save(collection, documents)
        return True


def get_storage_backend(settings: Optional[Settings] = None) -> CloudStorageBackend:
    """Get the Supabase backend when configured, local files otherwise"""
    settings = settings or get_settings()

    if settings.uses_supabase:
        logger.info("🚀 Using Supabase storage backend")
        from .supabase_storage import SupabaseStorageBackend
        return SupabaseStorageBackend(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)

    logger.warning("⚠️ No Supabase configuration found, using local file storage (development only)")
    return LocalFileBackend(settings.LOCAL_DATA_DIR)


# Global storage backend - lazy initialization so importing never connects
storage_backend: Optional[CloudStorageBackend] = None


def get_global_storage_backend() -> CloudStorageBackend:
    """Get the global storage backend with lazy initialization"""
    global storage_backend
    if storage_backend is None:
        storage_backend = get_storage_backend()
    return storage_backend
