"""
Supabase storage backend
Each collection is a table with an `id` primary key; measurements live in a JSONB column
"""

import logging
import uuid
from typing import Dict, List, Any, Optional

from starlette.concurrency import run_in_threadpool
from supabase import create_client, Client

from ..exceptions import StorageError
from .cloud_storage import CloudStorageBackend

logger = logging.getLogger(__name__)


class SupabaseStorageBackend(CloudStorageBackend):
    """Document store on Supabase tables

    The supabase client is synchronous, so every query runs in the threadpool
    to keep the event loop free.
    """

    name = "supabase"

    def __init__(self, supabase_url: str, supabase_key: str, client: Optional[Client] = None):
        if not supabase_url:
            raise ValueError("SUPABASE_URL environment variable is required")
        if not supabase_key:
            raise ValueError("SUPABASE_ANON_KEY environment variable is required")

        self.supabase_url = supabase_url
        self.supabase: Client = client or create_client(supabase_url, supabase_key)
        logger.info(f"✅ Supabase storage initialized: {supabase_url}")

    async def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        def _get():
            return self.supabase.table(collection).select('*').eq('id', doc_id).execute()

        try:
            result = await run_in_threadpool(_get)
        except Exception as e:
            logger.error(f"❌ Error getting {collection}/{doc_id}: {e}")
            raise StorageError(f"Failed to get {collection}/{doc_id}: {e}") from e
        return result.data[0] if result.data else None

    async def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        def _list():
            return self.supabase.table(collection).select('*').execute()

        try:
            result = await run_in_threadpool(_list)
        except Exception as e:
            logger.error(f"❌ Error listing {collection}: {e}")
            raise StorageError(f"Failed to list {collection}: {e}") from e
        return result.data if result.data else []

    async def add_document(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = str(uuid.uuid4())
        record = {**{k: v for k, v in data.items() if k != "id"}, 'id': doc_id}

        def _insert():
            return self.supabase.table(collection).insert(record).execute()

        try:
            await run_in_threadpool(_insert)
        except Exception as e:
            logger.error(f"❌ Error adding to {collection}: {e}")
            raise StorageError(f"Failed to add to {collection}: {e}") from e
        logger.info(f"✅ Added {collection}/{doc_id}")
        return doc_id

    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        def _update():
            return self.supabase.table(collection).update(fields).eq('id', doc_id).execute()

        try:
            result = await run_in_threadpool(_update)
        except Exception as e:
            logger.error(f"❌ Error updating {collection}/{doc_id}: {e}")
            raise StorageError(f"Failed to update {collection}/{doc_id}: {e}") from e
        return bool(result.data)
