from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from unittest.mock import Mock, patch

import pytest

from tailor_ops.config.settings import Settings
from tailor_ops.exceptions import InvoiceConfigurationError, InvoiceGenerationError
from tailor_ops.models import InvoiceRequest
from tailor_ops.services.invoice_service import InvoiceGenerator, build_replacements

FIXED_NOW = 1700000000.0
VIEW_LINK = "https://drive.google.com/file/d/pdf-1/view?usp=drivesdk"


def _settings(**overrides):
    values = {
        "GOOGLE_SERVICE_ACCOUNT_FILE": "",
        "GOOGLE_SERVICE_ACCOUNT_JSON": '{"type": "service_account"}',
        "INVOICE_TEMPLATE_ID": "template-1",
        "INVOICE_FOLDER_ID": "folder-1",
    }
    values.update(overrides)
    return Settings(**values)


def _request(**overrides):
    payload = {
        "customerName": "Asha",
        "customerPhone": "9876543210",
        "clothingType": "blouse",
        "subType": "padding",
        "quantity": 2,
        "amount": 500,
    }
    payload.update(overrides)
    return InvoiceRequest(**payload)


class TestInvoiceGenerator:
    """Unit tests for the invoice chain"""

    @pytest.fixture
    def client(self):
        client = Mock()
        client.copy_document.return_value = "copy-1"
        client.export_pdf.return_value = b"%PDF-1.4 test"
        client.upload_pdf.return_value = "pdf-1"
        client.get_view_link.return_value = VIEW_LINK
        return client

    @pytest.fixture
    def generator(self, client):
        return InvoiceGenerator(_settings(), client=client, clock=lambda: FIXED_NOW)

    def test_runs_steps_in_order(self, generator, client):
        assert generator.generate(_request()) == VIEW_LINK

        assert [c[0] for c in client.method_calls] == [
            "copy_document",
            "replace_all_text",
            "export_pdf",
            "upload_pdf",
            "share_publicly",
            "get_view_link",
        ]

    def test_copy_named_with_customer_and_timestamp(self, generator, client):
        generator.generate(_request())
        client.copy_document.assert_called_once_with("template-1", "Invoice-Asha-1700000000000")

    def test_placeholders_for_blouse_bill(self, generator, client):
        generator.generate(_request())

        document_id, replacements = client.replace_all_text.call_args[0]
        assert document_id == "copy-1"
        assert replacements == {
            "{{Date}}": datetime.fromtimestamp(FIXED_NOW).strftime("%d/%m/%Y"),
            "{{CustomerName}}": "Asha",
            "{{CustomerNumber}}": "9876543210",
            "{{Item}}": "blouse (padding)",
            "{{Quantity}}": "2",
            "{{Amount}}": "500",
        }

    def test_other_clothing_item_text(self):
        request = _request(clothingType="other", subType="", otherClothing="Anarkali dress")
        replacements = build_replacements(request, "01/01/2024")
        assert replacements["{{Item}}"] == "Anarkali dress"

    def test_pdf_uploaded_to_folder_and_shared(self, generator, client):
        generator.generate(_request())

        client.export_pdf.assert_called_once_with("copy-1")
        client.upload_pdf.assert_called_once_with("Invoice-Asha.pdf", b"%PDF-1.4 test", "folder-1")
        client.share_publicly.assert_called_once_with("pdf-1")
        client.get_view_link.assert_called_once_with("pdf-1")
        client.delete_file.assert_not_called()

    def test_copy_failure_stops_chain(self, generator, client):
        client.copy_document.side_effect = RuntimeError("template not found")

        with pytest.raises(InvoiceGenerationError) as exc_info:
            generator.generate(_request())

        assert exc_info.value.step == "copy"
        assert "copy" in str(exc_info.value)
        assert "template not found" in str(exc_info.value)
        client.upload_pdf.assert_not_called()
        client.share_publicly.assert_not_called()
        client.delete_file.assert_not_called()

    def test_export_failure_deletes_copy(self, generator, client):
        client.export_pdf.side_effect = RuntimeError("export quota")

        with pytest.raises(InvoiceGenerationError) as exc_info:
            generator.generate(_request())

        assert exc_info.value.step == "export"
        client.delete_file.assert_called_once_with("copy-1")
        client.upload_pdf.assert_not_called()

    def test_permission_failure_deletes_pdf_then_copy(self, generator, client):
        client.share_publicly.side_effect = RuntimeError("sharing disabled")

        with pytest.raises(InvoiceGenerationError) as exc_info:
            generator.generate(_request())

        assert exc_info.value.step == "permission"
        assert [c[0][0] for c in client.delete_file.call_args_list] == ["pdf-1", "copy-1"]
        client.get_view_link.assert_not_called()

    def test_cleanup_failure_keeps_original_error(self, generator, client):
        client.get_view_link.side_effect = RuntimeError("link unavailable")
        client.delete_file.side_effect = RuntimeError("delete denied")

        with pytest.raises(InvoiceGenerationError) as exc_info:
            generator.generate(_request())

        assert exc_info.value.step == "link"
        assert "link unavailable" in exc_info.value.message
        assert client.delete_file.call_count == 2

    def test_missing_template_is_configuration_error(self, client):
        generator = InvoiceGenerator(_settings(INVOICE_TEMPLATE_ID=""), client=client)

        with pytest.raises(InvoiceConfigurationError) as exc_info:
            generator.generate(_request())

        assert "INVOICE_TEMPLATE_ID" in exc_info.value.message
        assert client.method_calls == []

    def test_missing_credentials_is_configuration_error(self, client, tmp_path):
        settings = _settings(
            GOOGLE_SERVICE_ACCOUNT_JSON="",
            GOOGLE_SERVICE_ACCOUNT_FILE=str(tmp_path / "missing.json"),
        )
        generator = InvoiceGenerator(settings, client=client)

        with pytest.raises(InvoiceConfigurationError):
            generator.generate(_request())
        assert client.method_calls == []

    def test_credentials_file_satisfies_configuration(self, client, tmp_path):
        key_file = tmp_path / "service-account.json"
        key_file.write_text("{}")
        settings = _settings(GOOGLE_SERVICE_ACCOUNT_JSON="", GOOGLE_SERVICE_ACCOUNT_FILE=str(key_file))

        generator = InvoiceGenerator(settings, client=client, clock=lambda: FIXED_NOW)
        assert generator.generate(_request()) == VIEW_LINK


class TestPerRunClients:
    """Each run gets its own Google client; only the credentials are shared"""

    def _fresh_client(self, **kwargs):
        client = Mock()
        client.copy_document.return_value = "copy-1"
        client.export_pdf.return_value = b"%PDF"
        client.upload_pdf.return_value = "pdf-1"
        client.get_view_link.return_value = VIEW_LINK
        client.credentials = kwargs.get("credentials")
        return client

    def test_concurrent_runs_use_separate_clients(self):
        with patch("tailor_ops.services.invoice_service.GoogleWorkspaceClient") as client_cls:
            client_cls.load_credentials.return_value = "shared-credentials"
            client_cls.side_effect = self._fresh_client
            generator = InvoiceGenerator(_settings(), clock=lambda: FIXED_NOW)

            with ThreadPoolExecutor(max_workers=2) as pool:
                links = list(pool.map(lambda _: generator.generate(_request()), range(2)))

        assert links == [VIEW_LINK, VIEW_LINK]
        assert client_cls.call_count == 2
        for call in client_cls.call_args_list:
            assert call[1] == {"credentials": "shared-credentials"}
        client_cls.load_credentials.assert_called_once_with("", '{"type": "service_account"}')

    def test_failed_run_cleans_up_with_its_own_client(self):
        with patch("tailor_ops.services.invoice_service.GoogleWorkspaceClient") as client_cls:
            client_cls.load_credentials.return_value = "shared-credentials"
            clients = []

            def make_client(**kwargs):
                client = self._fresh_client(**kwargs)
                client.export_pdf.side_effect = RuntimeError("export quota")
                clients.append(client)
                return client

            client_cls.side_effect = make_client
            generator = InvoiceGenerator(_settings(), clock=lambda: FIXED_NOW)

            with pytest.raises(InvoiceGenerationError):
                generator.generate(_request())

        assert len(clients) == 1
        clients[0].delete_file.assert_called_once_with("copy-1")
