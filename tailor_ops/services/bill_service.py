"""
Bill recording and invoice hand-off for the generate-bill screen
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ..config.settings import Settings, get_settings
from ..core.billing import build_whatsapp_link, validate_bill_fields
from ..exceptions import FormValidationError
from ..models import OTHER_CLOTHING, BillCreate, InvoiceRequest
from .cloud_storage import BILLS, CloudStorageBackend
from .customer_service import CustomerService
from .invoice_service import InvoiceGenerator

logger = logging.getLogger(__name__)


class BillService:
    """Stores a bill, generates its invoice and prepares the WhatsApp link"""

    def __init__(self, storage: CloudStorageBackend, invoice_generator: InvoiceGenerator,
                 settings: Optional[Settings] = None):
        self.storage = storage
        self.customers = CustomerService(storage)
        self.invoice_generator = invoice_generator
        self.settings = settings or get_settings()

    async def generate_bill(self, form: BillCreate) -> Dict[str, Any]:
        """
        Validate the bill, store it, then generate and share the invoice

        Returns:
            {"billId", "pdfUrl", "whatsappUrl"}

        Raises:
            CustomerNotFoundError: If the selected customer does not exist
            FormValidationError: If the bill fields are incomplete
            InvoiceConfigurationError / InvoiceGenerationError: From the invoice chain
        """
        errors = validate_bill_fields(form.clothing_type, form.sub_type, form.other_clothing, form.amount)
        if form.quantity < 1:
            errors["quantity"] = "Quantity must be at least 1."
        if errors:
            raise FormValidationError(next(iter(errors.values())), errors)

        customer = await self.customers.get_customer(form.customer_id)
        is_other = form.clothing_type == OTHER_CLOTHING
        bill = {
            "customerId": customer.id,
            "customerName": customer.name,
            "customerPhone": customer.phone,
            "clothingType": form.clothing_type,
            "subType": "" if is_other else form.sub_type,
            "otherClothing": form.other_clothing if is_other else "",
            "quantity": form.quantity,
            "amount": form.amount,
        }
        try:
            request = InvoiceRequest(**bill)
        except ValidationError as e:
            raise FormValidationError(f"Invalid bill: {e.errors()[0]['msg']}") from e

        bill_id = await self.storage.add_document(BILLS, bill)
        logger.info(f"🧾 Stored bill {bill_id} for {customer.name}")

        pdf_url = await run_in_threadpool(self.invoice_generator.generate, request)

        whatsapp_url = build_whatsapp_link(
            customer.phone,
            customer.name,
            pdf_url,
            self.settings.SHOP_NAME,
            self.settings.DEFAULT_COUNTRY_CODE,
        )
        return {"billId": bill_id, "pdfUrl": pdf_url, "whatsappUrl": whatsapp_url}
