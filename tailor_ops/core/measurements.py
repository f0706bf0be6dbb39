"""
Measurement form rules

Field catalogs per measurement type, input sanitizing for the edit screen,
and the validation the add/edit screens run before writing a customer.
"""

import math
import re
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional

PHONE_PATTERN = re.compile(r"[0-9]{10}")
_NON_NUMERIC = re.compile(r"[^0-9.]")
# Decimal literals as a browser Number() reads them, without hex or Infinity
_DECIMAL_LITERAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

REQUIRED_MESSAGE = "This field is required"
INVALID_NUMBER_MESSAGE = "Please enter a valid number"
ALREADY_EXISTS = "Already exists"

TOP_AND_BLOUSE_FIELDS = [
    ("length", "Length"),
    ("shoulder", "Shoulder"),
    ("upperChest", "Upper Chest"),
    ("chest", "Chest"),
    ("waist", "Waist"),
    ("hip", "Hip"),
    ("sleevesLength", "Sleeves Length"),
    ("armRound", "Arm Round"),
    ("bottomRound", "Bottom Round"),
    ("bicep", "Bicep"),
    ("frontNeck", "Front Neck"),
    ("backNeck", "Back Neck"),
]

SALWAR_FIELDS = [
    ("length", "Length"),
    ("bottomRound", "Bottom Round"),
    ("kneeRound", "Knee Round"),
    ("kneeLength", "Knee Length"),
    ("thigh", "Thigh"),
]

MEASUREMENT_TYPES = [
    ("top", "Top"),
    ("blouse", "Blouse"),
    ("salwar", "Salwar"),
]


@dataclass
class MeasurementTypeOption:
    """One entry of the measurement-type selector"""
    value: str
    label: str
    disabled: bool = False
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data["description"] is None:
            del data["description"]
        return data


def is_valid_phone(phone: Any) -> bool:
    """Phone numbers are exactly ten digits, nothing else"""
    if not isinstance(phone, str):
        return False
    return PHONE_PATTERN.fullmatch(phone) is not None


def is_known_measurement_type(measurement_type: str) -> bool:
    return measurement_type in {value for value, _ in MEASUREMENT_TYPES}


def measurement_type_key(measurement_type: str) -> str:
    """Storage key for a measurement type: 'top' -> 'Top'"""
    if not measurement_type:
        return measurement_type
    return measurement_type[0].upper() + measurement_type[1:]


def fields_for(measurement_type: str) -> List[str]:
    """Field ids collected for a measurement type (case-insensitive)"""
    catalog = SALWAR_FIELDS if measurement_type.lower() == "salwar" else TOP_AND_BLOUSE_FIELDS
    return [field_id for field_id, _ in catalog]


def sanitize_measurement_input(value: Any) -> str:
    """Keep digits and the first decimal point: '3..5a' -> '3.5'"""
    cleaned = _NON_NUMERIC.sub("", str(value))
    parts = cleaned.split(".")
    if len(parts) > 2:
        cleaned = parts[0] + "." + "".join(parts[1:])
    return cleaned


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    text = str(value).strip()
    if not _DECIMAL_LITERAL.fullmatch(text):
        return False
    return math.isfinite(float(text))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_measurements(measurement_type: str, values: Mapping[str, Any]) -> Dict[str, str]:
    """
    Check a new measurement submission against the type's field catalog

    Returns:
        Mapping of field id to error message; empty when the form is valid
    """
    errors: Dict[str, str] = {}
    for field_id in fields_for(measurement_type):
        value = values.get(field_id)
        if _is_blank(value):
            errors[field_id] = REQUIRED_MESSAGE
        elif not _is_number(value):
            errors[field_id] = INVALID_NUMBER_MESSAGE
    return errors


def validate_measurement_values(values: Mapping[str, Any]) -> Dict[str, str]:
    """Edit-screen check: every supplied value must be a non-empty number"""
    errors: Dict[str, str] = {}
    for field_id, value in values.items():
        if _is_blank(value):
            errors[field_id] = REQUIRED_MESSAGE
        elif not _is_number(value):
            errors[field_id] = INVALID_NUMBER_MESSAGE
    return errors


def measurement_type_options(existing: Optional[Mapping[str, Any]]) -> List[MeasurementTypeOption]:
    """Selector entries, with types the customer already has disabled"""
    options = []
    for value, label in MEASUREMENT_TYPES:
        present = bool(existing) and bool(existing.get(label))
        options.append(MeasurementTypeOption(
            value=value,
            label=label,
            disabled=present,
            description=ALREADY_EXISTS if present else None,
        ))
    return options
