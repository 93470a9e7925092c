"""
Tenant verification payload: validation, defaults and age derivation
"""

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as SchemaError

from errors import ValidationError

logger = logging.getLogger(__name__)

DOB_PATTERN = re.compile(r"^[0-9]{2}-[0-9]{2}-[0-9]{4}$")
DOB_FORMAT_MESSAGE = "DOB must be in DD-MM-YYYY format"

REQUIRED_FIELDS = (
    "id_type",
    "id_number",
    "first_name",
    "last_name",
    "father_first_name",
    "father_last_name",
    "caste",
    "date_of_birth",
    "tenant_state",
    "tenant_police_district",
    "tenant_police_station",
    "phone",
    "permanent_address",
    "passport_photo_url",
)

# Values the external form needs but callers usually omit. Known-good values
# accepted by the target site.
FORM_DEFAULTS: Dict[str, str] = {
    "avail_from": "10",
    "avail_to": "18",
    "gender": "Female",
    "purpose": "Residence",
    "address_of_rented_property": "XYZ,ASD,JAIPUR",
    "landlord_first_name": "ZZZ",
    "landlord_middle_name": "AAA",
    "landlord_last_name": "SSS",
    "landlord_father_first": "AAA",
    "landlord_father_middle": "SSS",
    "landlord_father_last": "DDD",
    "landlord_mobile": "9856325698",
    "landlord_address": "XYZ,ASD,JAIPUR",
    "landlord_police_district": "JAIPUR EAST",
    "landlord_police_station": "RAMNAGARIYA",
    "referenced_by": "ONLINE",
}

# Form constants that have no request field; callers may override them
# through the ``extensions`` map.
EXTENSION_FIELDS = ("avail_from", "avail_to", "gender", "purpose")


def _number_to_text(value: Any) -> Any:
    # Phone numbers and amounts often arrive as JSON numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class SubmissionRequest(BaseModel):
    """Inbound tenant verification payload"""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    # Tenant identity
    id_type: Optional[str] = None
    id_number: Optional[str] = None
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    father_first_name: Optional[str] = None
    father_middle_name: Optional[str] = None
    father_last_name: Optional[str] = None
    caste: Optional[str] = None
    date_of_birth: str
    age: Optional[str] = None
    phone: Optional[str] = None
    permanent_address: Optional[str] = None

    # Tenant location cascade
    tenant_state: Optional[str] = None
    tenant_police_district: Optional[str] = None
    tenant_police_station: Optional[str] = None

    # Property
    address_of_rented_property: Optional[str] = None
    rent_amount: Optional[str] = None
    rental_duration: Optional[str] = None
    property_type: Optional[str] = None

    # Landlord
    landlord_first_name: Optional[str] = None
    landlord_middle_name: Optional[str] = None
    landlord_last_name: Optional[str] = None
    landlord_father_first: Optional[str] = None
    landlord_father_middle: Optional[str] = None
    landlord_father_last: Optional[str] = None
    landlord_mobile: Optional[str] = None
    landlord_address: Optional[str] = None
    landlord_police_district: Optional[str] = None
    landlord_police_station: Optional[str] = None
    referenced_by: Optional[str] = None

    # Attachments (URL or local path)
    passport_photo_url: Optional[str] = None
    combined_id_photo_url: Optional[str] = None

    extensions: Dict[str, str] = {}

    @field_validator("*", mode="before")
    @classmethod
    def _numbers_to_text(cls, value: Any) -> Any:
        return _number_to_text(value)

    @field_validator("extensions", mode="before")
    @classmethod
    def _known_extensions(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        unknown = sorted(set(value) - set(EXTENSION_FIELDS))
        if unknown:
            raise ValueError(
                f"unknown extension field(s): {', '.join(unknown)}; "
                f"allowed: {', '.join(EXTENSION_FIELDS)}"
            )
        return {key: _number_to_text(item) for key, item in value.items()}

    def missing_required_fields(self) -> List[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]


class ResolvedSubmission(BaseModel):
    """SubmissionRequest with every form-required default filled in"""

    model_config = ConfigDict(frozen=True)

    values: Dict[str, str]
    defaulted_fields: Tuple[str, ...] = ()

    def get(self, name: str) -> str:
        return self.values.get(name, "")

    def form_values(self) -> Dict[str, str]:
        return dict(self.values)

    @property
    def display_name(self) -> str:
        return f"{self.get('first_name')} {self.get('last_name')}".strip()


def assert_dob_format(value: Any) -> str:
    """Reject anything that is not DD-MM-YYYY"""
    if not isinstance(value, str) or not DOB_PATTERN.match(value.strip()):
        raise ValidationError(DOB_FORMAT_MESSAGE)
    return value.strip()


def compute_age(date_of_birth: str, today: Optional[date] = None) -> str:
    """Age in completed years; the birthday itself counts as reached"""
    try:
        dd, mm, yyyy = (int(part) for part in date_of_birth.split("-"))
    except ValueError:
        return ""
    today = today or date.today()
    age = today.year - yyyy
    had_birthday = today.month > mm or (today.month == mm and today.day >= dd)
    if not had_birthday:
        age -= 1
    return str(age)


def mask_identifier(value: Optional[str]) -> str:
    if not value:
        return ""
    return f"{'*' * max(len(value) - 4, 0)}{value[-4:]}"


def validate_payload(payload: Any) -> SubmissionRequest:
    """
    Validate a raw request body.

    The date of birth is checked first so malformed dates fail before any
    browser is launched. Missing required fields only produce a warning;
    form defaults cover what the target site needs.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    assert_dob_format(payload.get("date_of_birth"))

    try:
        request = SubmissionRequest.model_validate(payload)
    except SchemaError as e:
        details = [
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        ]
        raise ValidationError("Invalid submission payload", details=details) from e

    missing = request.missing_required_fields()
    if missing:
        logger.warning("⚠️ Submission is missing required fields: %s", ", ".join(missing))
    return request


def resolve_submission(request: SubmissionRequest, today: Optional[date] = None) -> ResolvedSubmission:
    """Apply FORM_DEFAULTS, extension overrides and the derived age"""
    values: Dict[str, str] = {}
    for name, value in request.model_dump(exclude={"extensions"}).items():
        values[name] = value or ""

    defaulted = []
    for name, fallback in FORM_DEFAULTS.items():
        if name in request.extensions and request.extensions[name]:
            values[name] = request.extensions[name]
        elif not values.get(name):
            values[name] = fallback
            if name not in EXTENSION_FIELDS:
                defaulted.append(name)

    if not values.get("age"):
        values["age"] = compute_age(values["date_of_birth"], today)
        defaulted.append("age")

    return ResolvedSubmission(values=values, defaulted_fields=tuple(defaulted))
