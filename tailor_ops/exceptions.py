"""
Tailor Ops Exceptions

Custom exception classes for storage, form and invoice error handling.
"""

from typing import Dict, Optional


class TailorOpsError(Exception):
    """Base exception for shop service errors"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class ConfigurationError(TailorOpsError):
    """Exception for missing or invalid configuration"""
    pass


class InvoiceConfigurationError(ConfigurationError):
    """Exception raised before any remote call when invoice settings are missing"""
    pass


class InvoiceGenerationError(TailorOpsError):
    """Exception for a failed step of the invoice chain"""

    def __init__(self, step: str, message: str, details: Optional[str] = None):
        super().__init__(message, status_code=500, details=details)
        self.step = step


class StorageError(TailorOpsError):
    """Exception for document store failures"""
    pass


class CustomerNotFoundError(TailorOpsError):
    """Exception for lookups of unknown customers"""

    def __init__(self, customer_id: str):
        super().__init__(f"Customer {customer_id} not found", status_code=404)
        self.customer_id = customer_id


class MeasurementConflictError(TailorOpsError):
    """Exception for adding a measurement type the customer already has"""

    def __init__(self, customer_id: str, measurement_type: str):
        super().__init__(
            f"{measurement_type} measurements already exist for customer {customer_id}",
            status_code=409,
        )
        self.customer_id = customer_id
        self.measurement_type = measurement_type


class FormValidationError(TailorOpsError):
    """Exception for form input rejected before any write or remote call"""

    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None):
        super().__init__(message, status_code=400)
        self.fields = fields or {}
