"""
Tailor shop API
- Invoice generation: POST /api/generate-invoice
- Customers, measurements and bills for the shop screens
- Access code check for the screens' lock page
"""

import hmac
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ..config.settings import Settings, get_settings
from ..exceptions import (
    CustomerNotFoundError,
    FormValidationError,
    InvoiceConfigurationError,
    InvoiceGenerationError,
    MeasurementConflictError,
    StorageError,
)
from ..models import (
    AccessRequest,
    BillCreate,
    BillResponse,
    CustomerCreate,
    CustomerSearchResponse,
    InvoiceRequest,
    InvoiceResponse,
    MeasurementAdd,
    MeasurementEdit,
)
from .bill_service import BillService
from .cloud_storage import CloudStorageBackend, get_global_storage_backend
from .customer_service import CustomerService
from .invoice_service import GENERIC_FAILURE, InvoiceGenerator

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Invoice service is not configured"
WRONG_ACCESS_CODE = "Incorrect password. Please try again."

_invoice_generator: Optional[InvoiceGenerator] = None


def get_storage() -> CloudStorageBackend:
    return get_global_storage_backend()


def get_invoice_generator() -> InvoiceGenerator:
    """Shared generator so the Google services are built once per process"""
    global _invoice_generator
    if _invoice_generator is None:
        _invoice_generator = InvoiceGenerator(get_settings())
    return _invoice_generator


def get_customer_service(storage: CloudStorageBackend = Depends(get_storage)) -> CustomerService:
    return CustomerService(storage)


def get_bill_service(
    storage: CloudStorageBackend = Depends(get_storage),
    generator: InvoiceGenerator = Depends(get_invoice_generator),
    settings: Settings = Depends(get_settings),
) -> BillService:
    return BillService(storage, generator, settings)


def _error(status_code: int, error: str, details: Optional[str] = None,
           fields: Optional[Dict[str, str]] = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": error}
    if details:
        content["details"] = details
    if fields:
        content["fields"] = fields
    return JSONResponse(status_code=status_code, content=content)


def _invoice_error(e: Exception) -> JSONResponse:
    if isinstance(e, InvoiceConfigurationError):
        logger.error(f"❌ {e.message}")
        return _error(500, NOT_CONFIGURED, e.message)
    if isinstance(e, InvoiceGenerationError):
        return _error(500, GENERIC_FAILURE, e.message)
    logger.exception(f"❌ Unexpected invoice failure: {e}")
    return _error(500, GENERIC_FAILURE, str(e))


# FastAPI app
app = FastAPI(title="Tailor Shop Service - Customers, Measurements + Invoices")
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check(storage: CloudStorageBackend = Depends(get_storage),
                       settings: Settings = Depends(get_settings)):
    return {
        "ok": True,
        "storage": storage.name,
        "invoice_configured": settings.invoice_configured,
    }


@app.post("/api/generate-invoice", response_model=InvoiceResponse)
async def generate_invoice(request: InvoiceRequest,
                           generator: InvoiceGenerator = Depends(get_invoice_generator)):
    """Generate a shareable PDF invoice for a bill"""
    try:
        pdf_url = await run_in_threadpool(generator.generate, request)
    except Exception as e:
        return _invoice_error(e)
    return {"pdfUrl": pdf_url}


@app.get("/api/customers", response_model=CustomerSearchResponse)
async def search_customers(q: str = "", service: CustomerService = Depends(get_customer_service)):
    """Customers matching a name or phone fragment, plus the total on file"""
    try:
        all_customers = await service.list_customers()
        matches = await service.search_customers(q) if q else all_customers
    except StorageError as e:
        return _error(500, "Failed to fetch customers. Please try again.", e.message)
    return {
        "customers": [c.model_dump() for c in matches],
        "total": len(all_customers),
    }


@app.get("/api/customers/{customer_id}")
async def get_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    try:
        customer = await service.get_customer(customer_id)
    except CustomerNotFoundError as e:
        return _error(404, e.message)
    except StorageError as e:
        return _error(500, "Failed to fetch customer. Please try again.", e.message)
    return customer.model_dump()


@app.post("/api/customers", status_code=201)
async def add_customer(form: CustomerCreate, service: CustomerService = Depends(get_customer_service)):
    """Create a customer with their first measurement type"""
    try:
        customer = await service.add_customer(form)
    except FormValidationError as e:
        return _error(400, e.message, fields=e.fields)
    except StorageError as e:
        return _error(500, "Failed to add customer. Please try again.", e.message)
    return customer.model_dump()


@app.get("/api/customers/{customer_id}/measurement-types")
async def get_measurement_types(customer_id: str,
                                service: CustomerService = Depends(get_customer_service)):
    """Measurement-type selector entries, with recorded types disabled"""
    try:
        options = await service.get_measurement_type_options(customer_id)
    except CustomerNotFoundError as e:
        return _error(404, e.message)
    except StorageError as e:
        return _error(500, "Failed to fetch customer. Please try again.", e.message)
    return {"types": [option.to_dict() for option in options]}


@app.post("/api/customers/{customer_id}/measurements")
async def add_measurement(customer_id: str, form: MeasurementAdd,
                          service: CustomerService = Depends(get_customer_service)):
    try:
        customer = await service.add_measurement(customer_id, form)
    except FormValidationError as e:
        return _error(400, e.message, fields=e.fields)
    except CustomerNotFoundError as e:
        return _error(404, e.message)
    except MeasurementConflictError as e:
        return _error(409, e.message)
    except StorageError as e:
        return _error(500, "Failed to save measurements. Please try again.", e.message)
    return customer.model_dump()


@app.put("/api/customers/{customer_id}/measurements/{measurement_type}")
async def edit_measurement(customer_id: str, measurement_type: str, form: MeasurementEdit,
                           service: CustomerService = Depends(get_customer_service)):
    try:
        customer = await service.edit_measurement(customer_id, measurement_type, form.measurements)
    except FormValidationError as e:
        return _error(400, e.message, fields=e.fields)
    except CustomerNotFoundError as e:
        return _error(404, e.message)
    except StorageError as e:
        return _error(500, "Failed to update measurements. Please try again.", e.message)
    return customer.model_dump()


@app.post("/api/bills", status_code=201, response_model=BillResponse)
async def generate_bill(form: BillCreate, service: BillService = Depends(get_bill_service)):
    """Store a bill, generate its invoice and return the WhatsApp link"""
    try:
        return await service.generate_bill(form)
    except FormValidationError as e:
        return _error(400, e.message, fields=e.fields)
    except CustomerNotFoundError as e:
        return _error(404, e.message)
    except StorageError as e:
        return _error(500, "Failed to save bill. Please try again.", e.message)
    except Exception as e:
        return _invoice_error(e)


@app.post("/api/access")
async def check_access_code(body: AccessRequest, settings: Settings = Depends(get_settings)):
    """Compare the lock-screen code; this is a convenience gate, not authentication"""
    expected = settings.ACCESS_PASSWORD
    if expected and hmac.compare_digest(body.code.encode(), expected.encode()):
        return {"ok": True}
    return _error(401, WRONG_ACCESS_CODE)
