"""
Billing rules: clothing catalog, invoice text and the WhatsApp hand-off link
"""

from typing import Dict, List, Optional, Union
from urllib.parse import quote

from ..models import OTHER_CLOTHING

CLOTHING_SUBTYPES: Dict[str, List[str]] = {
    "blouse": ["normal", "padding", "lining"],
    "suit": ["normal", "full-lining", "top-lining"],
    OTHER_CLOTHING: [],
}

WHATSAPP_BASE_URL = "https://wa.me/"

# Characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"


def invoice_item_text(clothing_type: str, sub_type: str, other_clothing: Optional[str] = None) -> str:
    """Item line for the invoice: '<type> (<subType>)', or the free text for 'other'"""
    if clothing_type == OTHER_CLOTHING:
        return other_clothing or ""
    return f"{clothing_type} ({sub_type})"


def format_number(value: Union[int, float]) -> str:
    """Render a quantity or amount the way a JSON number prints: 500, 499.5"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def validate_bill_fields(clothing_type: str, sub_type: str, other_clothing: str,
                         amount: Optional[float]) -> Dict[str, str]:
    """Generate-bill screen checks; returns field -> message"""
    errors: Dict[str, str] = {}
    if not clothing_type:
        errors["clothingType"] = "Please select a clothing type."
    elif clothing_type not in CLOTHING_SUBTYPES:
        errors["clothingType"] = f"Unknown clothing type: {clothing_type}"
    elif clothing_type == OTHER_CLOTHING:
        if not other_clothing.strip():
            errors["otherClothing"] = "Please specify the clothing type."
    elif sub_type not in CLOTHING_SUBTYPES[clothing_type]:
        errors["subType"] = f"Please select a {clothing_type} type."

    if amount is None:
        errors["amount"] = "Please enter the amount."
    elif amount < 0:
        errors["amount"] = "Please enter a valid amount."
    return errors


def normalize_whatsapp_number(phone: str, default_country_code: str = "+91") -> str:
    """Strip spaces and dashes and make sure a country code is present"""
    number = phone.replace(" ", "").replace("-", "")
    if not number.startswith("+"):
        number = default_country_code + number
    return number


def invoice_message(customer_name: str, pdf_url: str, shop_name: str) -> str:
    return (
        f"Hello {customer_name},\n\n"
        f"Thank you for your purchase!\n"
        f"Your invoice is ready:\n"
        f"{pdf_url}\n\n"
        f"Best regards,\n"
        f"{shop_name}"
    )


def build_whatsapp_link(phone: str, customer_name: str, pdf_url: str,
                        shop_name: str, default_country_code: str = "+91") -> str:
    """wa.me deep link with the invoice message pre-filled"""
    number = normalize_whatsapp_number(phone, default_country_code).lstrip("+")
    text = quote(invoice_message(customer_name, pdf_url, shop_name), safe=_URI_COMPONENT_SAFE)
    return f"{WHATSAPP_BASE_URL}{number}?text={text}"
