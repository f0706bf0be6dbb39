import json
import threading
from unittest.mock import MagicMock, patch

import pytest

from tailor_ops.config.settings import Settings
from tailor_ops.exceptions import StorageError
from tailor_ops.services.cloud_storage import (
    BILLS,
    CUSTOMERS,
    LocalFileBackend,
    get_storage_backend,
)
from tailor_ops.services.supabase_storage import SupabaseStorageBackend


class TestLocalFileBackend:
    """Unit tests for the development JSON document store"""

    @pytest.fixture
    def storage(self, tmp_path):
        return LocalFileBackend(str(tmp_path / "shop_data"))

    @pytest.mark.asyncio
    async def test_add_then_get(self, storage):
        doc_id = await storage.add_document(CUSTOMERS, {"name": "Asha", "phone": "9876543210"})

        document = await storage.get_document(CUSTOMERS, doc_id)
        assert document == {"id": doc_id, "name": "Asha", "phone": "9876543210"}

    @pytest.mark.asyncio
    async def test_missing_document_is_none(self, storage):
        assert await storage.get_document(CUSTOMERS, "nope") is None
        assert await storage.list_documents(BILLS) == []

    @pytest.mark.asyncio
    async def test_update_overwrites_top_level_fields(self, storage):
        doc_id = await storage.add_document(CUSTOMERS, {
            "name": "Asha",
            "measurements": {"Top": {"length": "40"}},
        })

        found = await storage.update_document(CUSTOMERS, doc_id, {"measurements": {"Salwar": {"thigh": "22"}}})

        assert found is True
        document = await storage.get_document(CUSTOMERS, doc_id)
        assert document["name"] == "Asha"
        assert document["measurements"] == {"Salwar": {"thigh": "22"}}

    @pytest.mark.asyncio
    async def test_update_unknown_document(self, storage):
        assert await storage.update_document(CUSTOMERS, "nope", {"name": "x"}) is False

    @pytest.mark.asyncio
    async def test_collections_are_separate_files(self, storage, tmp_path):
        await storage.add_document(CUSTOMERS, {"name": "Asha"})
        await storage.add_document(BILLS, {"amount": 500})

        assert len(await storage.list_documents(CUSTOMERS)) == 1
        bills = json.loads((tmp_path / "shop_data" / "bills.json").read_text())
        assert list(bills.values()) == [{"amount": 500}]

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_storage_error(self, storage, tmp_path):
        (tmp_path / "shop_data" / "customers.json").write_text("{not json")
        with pytest.raises(StorageError):
            await storage.list_documents(CUSTOMERS)


class TestSupabaseStorageBackend:
    """Unit tests for the Supabase document store with a mocked client"""

    @pytest.fixture
    def supabase(self):
        return MagicMock()

    @pytest.fixture
    def storage(self, supabase):
        return SupabaseStorageBackend("https://example.supabase.co", "anon-key", client=supabase)

    def test_requires_url_and_key(self, supabase):
        with pytest.raises(ValueError):
            SupabaseStorageBackend("", "anon-key", client=supabase)
        with pytest.raises(ValueError):
            SupabaseStorageBackend("https://example.supabase.co", "", client=supabase)

    @pytest.mark.asyncio
    async def test_get_document(self, storage, supabase):
        table = supabase.table.return_value
        table.select.return_value.eq.return_value.execute.return_value.data = [{"id": "c1", "name": "Asha"}]

        assert await storage.get_document(CUSTOMERS, "c1") == {"id": "c1", "name": "Asha"}
        supabase.table.assert_called_with("customers")
        table.select.return_value.eq.assert_called_with("id", "c1")

    @pytest.mark.asyncio
    async def test_get_missing_document(self, storage, supabase):
        supabase.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []
        assert await storage.get_document(CUSTOMERS, "c1") is None

    @pytest.mark.asyncio
    async def test_add_document_generates_id(self, storage, supabase):
        doc_id = await storage.add_document(BILLS, {"amount": 500})

        inserted = supabase.table.return_value.insert.call_args[0][0]
        assert inserted == {"amount": 500, "id": doc_id}
        supabase.table.assert_called_with("bills")

    @pytest.mark.asyncio
    async def test_update_document(self, storage, supabase):
        table = supabase.table.return_value
        table.update.return_value.eq.return_value.execute.return_value.data = [{"id": "c1"}]

        assert await storage.update_document(CUSTOMERS, "c1", {"measurements": {}}) is True
        table.update.assert_called_with({"measurements": {}})

    @pytest.mark.asyncio
    async def test_client_errors_become_storage_errors(self, storage, supabase):
        supabase.table.return_value.select.return_value.execute.side_effect = RuntimeError("network down")

        with pytest.raises(StorageError) as exc_info:
            await storage.list_documents(CUSTOMERS)
        assert "network down" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_queries_run_off_the_event_loop_thread(self, storage, supabase):
        loop_thread = threading.get_ident()
        query_threads = []

        def execute():
            query_threads.append(threading.get_ident())
            return MagicMock(data=[{"id": "c1"}])

        supabase.table.return_value.select.return_value.execute.side_effect = execute

        assert await storage.list_documents(CUSTOMERS) == [{"id": "c1"}]
        assert len(query_threads) == 1
        assert query_threads[0] != loop_thread


class TestBackendSelection:
    def test_local_without_supabase(self, tmp_path):
        settings = Settings(SUPABASE_URL="", SUPABASE_ANON_KEY="", LOCAL_DATA_DIR=str(tmp_path))
        backend = get_storage_backend(settings)
        assert isinstance(backend, LocalFileBackend)
        assert backend.name == "local"

    def test_supabase_when_configured(self):
        settings = Settings(SUPABASE_URL="https://example.supabase.co", SUPABASE_ANON_KEY="anon-key")
        with patch("tailor_ops.services.supabase_storage.create_client") as create_client:
            backend = get_storage_backend(settings)

        assert isinstance(backend, SupabaseStorageBackend)
        create_client.assert_called_once_with("https://example.supabase.co", "anon-key")
