"""
Invoice generation for bills

Turns a bill into a publicly viewable PDF:
copy template -> fill placeholders -> export PDF -> upload -> share -> link.
Steps run strictly one after another with no retries. When a step fails the
Drive files created by earlier steps are deleted before the error is raised.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..adapters.google_workspace import GoogleWorkspaceClient
from ..config.settings import Settings, get_settings
from ..core.billing import format_number, invoice_item_text
from ..exceptions import InvoiceConfigurationError, InvoiceGenerationError
from ..models import InvoiceRequest

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to generate invoice"

STEP_MESSAGES = {
    "copy": "Failed to copy invoice template",
    "replace": "Failed to fill invoice placeholders",
    "export": "Failed to export invoice as PDF",
    "upload": "Failed to upload invoice PDF",
    "permission": "Failed to share invoice PDF",
    "link": "Failed to fetch invoice link",
}


def build_replacements(request: InvoiceRequest, invoice_date: str) -> Dict[str, str]:
    """Placeholder -> text for the invoice template"""
    return {
        "{{Date}}": invoice_date,
        "{{CustomerName}}": request.customer_name,
        "{{CustomerNumber}}": request.customer_phone,
        "{{Item}}": invoice_item_text(request.clothing_type, request.sub_type, request.other_clothing),
        "{{Quantity}}": format_number(request.quantity),
        "{{Amount}}": format_number(request.amount),
    }


class InvoiceGenerator:
    """Runs the invoice chain against Google Docs and Drive"""

    def __init__(self, settings: Optional[Settings] = None,
                 client: Optional[GoogleWorkspaceClient] = None,
                 clock: Callable[[], float] = time.time):
        """
        Initialize InvoiceGenerator

        Args:
            settings: Service settings (process settings when omitted)
            client: Google client used for every run; when omitted each run builds
                its own client from the shared service account credentials
            clock: Seconds since the epoch, used for copy names and the invoice date
        """
        self.settings = settings or get_settings()
        self._client = client
        self.clock = clock
        self._credentials = None
        self._credentials_lock = threading.Lock()

    def _shared_credentials(self):
        with self._credentials_lock:
            if self._credentials is None:
                self._credentials = GoogleWorkspaceClient.load_credentials(
                    self.settings.GOOGLE_SERVICE_ACCOUNT_FILE,
                    self.settings.GOOGLE_SERVICE_ACCOUNT_JSON or None,
                )
            return self._credentials

    def _client_for_run(self) -> GoogleWorkspaceClient:
        """A fresh client per run; concurrent runs each get their own HTTP connection"""
        if self._client is not None:
            return self._client
        return GoogleWorkspaceClient(credentials=self._shared_credentials())

    def check_configuration(self) -> None:
        """Raise InvoiceConfigurationError when credentials, template or folder are missing"""
        missing = []
        if not self.settings.has_service_account:
            missing.append("GOOGLE_SERVICE_ACCOUNT_FILE or GOOGLE_SERVICE_ACCOUNT_JSON")
        if not self.settings.INVOICE_TEMPLATE_ID:
            missing.append("INVOICE_TEMPLATE_ID")
        if not self.settings.INVOICE_FOLDER_ID:
            missing.append("INVOICE_FOLDER_ID")
        if missing:
            raise InvoiceConfigurationError(
                f"Invoice service is not configured: missing {', '.join(missing)}",
                status_code=500,
            )

    def generate(self, request: InvoiceRequest) -> str:
        """
        Generate the invoice PDF for a bill

        Returns:
            Shareable view link of the uploaded PDF

        Raises:
            InvoiceConfigurationError: Before any remote call, if settings are missing
            InvoiceGenerationError: If any remote step fails
        """
        self.check_configuration()

        now = self.clock()
        created: List[Tuple[str, str]] = []
        client = None
        step = "copy"
        try:
            client = self._client_for_run()
            copy_name = f"Invoice-{request.customer_name}-{int(now * 1000)}"
            copy_id = client.copy_document(self.settings.INVOICE_TEMPLATE_ID, copy_name)
            created.append(("document copy", copy_id))

            step = "replace"
            invoice_date = datetime.fromtimestamp(now).strftime(self.settings.INVOICE_DATE_FORMAT)
            client.replace_all_text(copy_id, build_replacements(request, invoice_date))

            step = "export"
            pdf_bytes = client.export_pdf(copy_id)

            step = "upload"
            file_id = client.upload_pdf(
                f"Invoice-{request.customer_name}.pdf",
                pdf_bytes,
                self.settings.INVOICE_FOLDER_ID,
            )
            created.append(("invoice PDF", file_id))

            step = "permission"
            client.share_publicly(file_id)

            step = "link"
            pdf_url = client.get_view_link(file_id)
        except Exception as e:
            message = f"{STEP_MESSAGES[step]}: {e}"
            logger.error(f"❌ Invoice for {request.customer_name} failed at step '{step}': {e}")
            self._cleanup(client, created)
            raise InvoiceGenerationError(step, message, details=str(e)) from e

        logger.info(f"✅ Invoice ready for {request.customer_name}: {pdf_url}")
        return pdf_url

    def _cleanup(self, client: Optional[GoogleWorkspaceClient], created: List[Tuple[str, str]]) -> None:
        """Delete the files a failed chain left behind, newest first"""
        for label, file_id in reversed(created):
            try:
                client.delete_file(file_id)
                logger.info(f"Removed {label} {file_id} after failed invoice")
            except Exception as e:
                logger.warning(f"⚠️ Could not remove {label} {file_id}: {e}")
