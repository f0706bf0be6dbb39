"""
Customer and measurement management

Server side of the add-customer, add-measurement, edit-measurement and
search screens. Every operation validates first and then performs a single
write to the document store.
"""

import logging
from typing import Any, Dict, List

from ..core.billing import format_number
from ..core.measurements import (
    fields_for,
    is_known_measurement_type,
    is_valid_phone,
    measurement_type_key,
    measurement_type_options,
    sanitize_measurement_input,
    validate_measurement_values,
    validate_measurements,
    MeasurementTypeOption,
)
from ..exceptions import CustomerNotFoundError, FormValidationError, MeasurementConflictError
from ..models import Customer, CustomerCreate, MeasurementAdd
from .cloud_storage import CUSTOMERS, CloudStorageBackend

logger = logging.getLogger(__name__)


def _to_customer(document: Dict[str, Any]) -> Customer:
    return Customer(
        id=str(document["id"]),
        name=document.get("name") or "",
        phone=document.get("phone") or "",
        measurements=document.get("measurements") or {},
    )


def _stored_value(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_number(value)
    return str(value).strip()


class CustomerService:
    """Service for managing customers and their measurements"""

    def __init__(self, storage: CloudStorageBackend):
        self.storage = storage

    async def list_customers(self) -> List[Customer]:
        documents = await self.storage.list_documents(CUSTOMERS)
        return [_to_customer(doc) for doc in documents]

    async def search_customers(self, query: str = "") -> List[Customer]:
        """Case-insensitive match on name, substring match on phone"""
        customers = await self.list_customers()
        q = (query or "").strip().lower()
        if not q:
            return customers
        return [c for c in customers if q in c.name.lower() or q in c.phone]

    async def get_customer(self, customer_id: str) -> Customer:
        document = await self.storage.get_document(CUSTOMERS, customer_id)
        if document is None:
            raise CustomerNotFoundError(customer_id)
        return _to_customer(document)

    async def get_measurement_type_options(self, customer_id: str) -> List[MeasurementTypeOption]:
        customer = await self.get_customer(customer_id)
        return measurement_type_options(customer.measurements)

    def _checked_measurements(self, measurement_type: str, values: Dict[str, Any]) -> Dict[str, str]:
        """Validate a new measurement form and keep only the type's catalog fields"""
        if not is_known_measurement_type(measurement_type):
            raise FormValidationError(
                "Please select a measurement type",
                {"measurementType": "Please select a measurement type"},
            )
        errors = validate_measurements(measurement_type, values)
        if errors:
            raise FormValidationError("Please check the measurements", errors)
        return {field_id: _stored_value(values[field_id]) for field_id in fields_for(measurement_type)}

    async def add_customer(self, form: CustomerCreate) -> Customer:
        """
        Create a customer together with their first measurement type

        Raises:
            FormValidationError: If name, phone, type or measurements are invalid
        """
        errors: Dict[str, str] = {}
        if not form.name.strip():
            errors["name"] = "Name is required"
        if not form.phone:
            errors["phone"] = "Phone number is required"
        elif not is_valid_phone(form.phone):
            errors["phone"] = "Phone number must be 10 digits"
        if not form.measurement_type:
            errors["measurementType"] = "Please select a measurement type"
        if errors:
            # First message is what the screen shows
            raise FormValidationError(next(iter(errors.values())), errors)

        measurement_type = form.measurement_type.lower()
        measurements = self._checked_measurements(measurement_type, form.measurements)
        type_key = measurement_type_key(measurement_type)
        data = {
            "name": form.name,
            "phone": form.phone,
            "measurements": {type_key: measurements},
        }
        customer_id = await self.storage.add_document(CUSTOMERS, data)
        logger.info(f"✅ Added customer {form.name} with {type_key} measurements")
        return Customer(id=customer_id, **data)

    async def add_measurement(self, customer_id: str, form: MeasurementAdd) -> Customer:
        """
        Add a measurement type the customer does not have yet

        Raises:
            CustomerNotFoundError: If the customer does not exist
            MeasurementConflictError: If the type is already recorded
        """
        measurement_type = form.measurement_type.lower()
        measurements = self._checked_measurements(measurement_type, form.measurements)
        type_key = measurement_type_key(measurement_type)

        customer = await self.get_customer(customer_id)
        if customer.measurements.get(type_key):
            raise MeasurementConflictError(customer_id, type_key)

        updated = {**customer.measurements, type_key: measurements}
        await self._write_measurements(customer_id, updated)
        logger.info(f"✅ Added {type_key} measurements for {customer.name}")
        return customer.model_copy(update={"measurements": updated})

    async def edit_measurement(self, customer_id: str, type_key: str,
                               values: Dict[str, Any]) -> Customer:
        """
        Overwrite one recorded measurement type (last write wins)

        Values are sanitized the way the edit screen does before validation.
        """
        customer = await self.get_customer(customer_id)
        if type_key not in customer.measurements:
            raise FormValidationError(
                f"No {type_key} measurements recorded for {customer.name}",
                {"measurementType": f"Unknown measurement type: {type_key}"},
            )

        cleaned = {field_id: sanitize_measurement_input(value) for field_id, value in values.items()}
        errors = validate_measurement_values(cleaned)
        if errors or not cleaned:
            raise FormValidationError("Please ensure all measurements are valid numbers.", errors)

        updated = {**customer.measurements, type_key: cleaned}
        await self._write_measurements(customer_id, updated)
        logger.info(f"✅ Updated {type_key} measurements for {customer.name}")
        return customer.model_copy(update={"measurements": updated})

    async def _write_measurements(self, customer_id: str, measurements: Dict[str, Any]) -> None:
        found = await self.storage.update_document(CUSTOMERS, customer_id, {"measurements": measurements})
        if not found:
            raise CustomerNotFoundError(customer_id)

