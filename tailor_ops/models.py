from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

OTHER_CLOTHING = "other"


class _CamelModel(BaseModel):
    # Requests arrive camelCased from the shop screens
    model_config = ConfigDict(populate_by_name=True)


class Customer(_CamelModel):
    id: str
    name: str
    phone: str
    measurements: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class InvoiceRequest(_CamelModel):
    """Bill payload accepted by the invoice handler"""
    customer_id: Optional[str] = Field(None, alias="customerId")
    customer_name: str = Field(alias="customerName", min_length=1)
    customer_phone: str = Field(alias="customerPhone", min_length=1)
    clothing_type: str = Field(alias="clothingType", min_length=1)
    sub_type: str = Field(alias="subType")
    other_clothing: Optional[str] = Field(None, alias="otherClothing")
    quantity: int = Field(ge=1)
    amount: float = Field(ge=0)

    @model_validator(mode="after")
    def _check_item_description(self) -> "InvoiceRequest":
        if self.clothing_type == OTHER_CLOTHING:
            if not (self.other_clothing or "").strip():
                raise ValueError("otherClothing is required when clothingType is 'other'")
        elif not self.sub_type:
            raise ValueError("subType is required")
        return self


class BillCreate(_CamelModel):
    """Generate-bill screen input; checked against the clothing catalog by the service"""
    customer_id: str = Field(alias="customerId")
    clothing_type: str = Field("", alias="clothingType")
    sub_type: str = Field("", alias="subType")
    other_clothing: str = Field("", alias="otherClothing")
    quantity: int = 1
    amount: Optional[float] = None


class CustomerCreate(_CamelModel):
    name: str = ""
    phone: str = ""
    measurement_type: str = Field("", alias="measurementType")
    measurements: Dict[str, Any] = Field(default_factory=dict)


class MeasurementAdd(_CamelModel):
    measurement_type: str = Field("", alias="measurementType")
    measurements: Dict[str, Any] = Field(default_factory=dict)


class MeasurementEdit(_CamelModel):
    measurements: Dict[str, Any] = Field(default_factory=dict)


class AccessRequest(BaseModel):
    code: str = ""


class InvoiceResponse(BaseModel):
    pdfUrl: str


class BillResponse(BaseModel):
    billId: str
    pdfUrl: str
    whatsappUrl: str


class CustomerSearchResponse(BaseModel):
    customers: List[Customer]
    total: int
