"""
Selectors and fill order for the Rajasthan Police tenant verification form.

Every logical field maps to an ordered list of selector candidates; the first
candidate present on the page wins. The form is an ASP.NET WebForms page, so
all server controls live under the ``ContentPlaceHolder1_`` prefix.
"""

import re
from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class FieldSpec:
    name: str
    selectors: Tuple[str, ...]
    kind: str = "text"  # "text" or "select"


@dataclass(frozen=True)
class CascadeSpec:
    """Dependent dropdowns; each selection reloads the next level's options"""

    name: str
    levels: Tuple[FieldSpec, ...]


@dataclass(frozen=True)
class FileSpec:
    name: str
    selector: str


PlanStep = Union[FieldSpec, CascadeSpec]


def _text(name: str, *selectors: str) -> FieldSpec:
    return FieldSpec(name, tuple(selectors), "text")


def _select(name: str, *selectors: str) -> FieldSpec:
    return FieldSpec(name, tuple(selectors), "select")


TENANT_TAB = "text=Tenant Uploads"

TENANT_IDENTITY: Tuple[PlanStep, ...] = (
    _select("id_type", "#ContentPlaceHolder1_ddlTIdCardType"),
    _text("id_number", "#ContentPlaceHolder1_txtTIdNo"),
    _select("avail_from", "#ContentPlaceHolder1_ddlTAvailFrom"),
    _select("avail_to", "#ContentPlaceHolder1_ddlTAvailTo"),
)

TENANT_DETAILS: Tuple[PlanStep, ...] = (
    _text("first_name", "#ContentPlaceHolder1_txtTFirstName"),
    _text("middle_name", "#ContentPlaceHolder1_txtTMIddleName"),
    _text("last_name", "#ContentPlaceHolder1_txtTLastName"),
    _text("father_first_name", "#ContentPlaceHolder1_txtTFirstFName"),
    _text("father_middle_name", "#ContentPlaceHolder1_txtTMIddleFName"),
    _text("father_last_name", "#ContentPlaceHolder1_txtTLastFName"),
    _select("gender", "#ContentPlaceHolder1_ddlTSex"),
    _select("caste", "#ContentPlaceHolder1_ddlTCaste"),
    _text("date_of_birth", "#ContentPlaceHolder1_txtTDOB"),
    _text("age", "#ContentPlaceHolder1_txtTAge"),
    _text("phone", "#ContentPlaceHolder1_txtTtntNo", "#ContentPlaceHolder1_txtTPhone"),
)

TENANT_LOCATION = CascadeSpec(
    "tenant_location",
    (
        _select("tenant_state", "#ContentPlaceHolder1_ddlTState"),
        _select("tenant_police_district", "#ContentPlaceHolder1_ddlTDistrict"),
        _select(
            "tenant_police_station",
            "#ContentPlaceHolder1_ddlTStation",
            "#ContentPlaceHolder1_ddlTPoliceStation",
        ),
    ),
)

ADDRESS_AND_PROPERTY: Tuple[PlanStep, ...] = (
    _text("permanent_address", "#ContentPlaceHolder1_txtTAddress"),
    _select("purpose", "#ContentPlaceHolder1_ddlpurpose"),
    _text(
        "address_of_rented_property",
        "#ContentPlaceHolder1_txtaddressofrented",
        "#ContentPlaceHolder1_txtPAddress",
    ),
    _text("rent_amount", "#ContentPlaceHolder1_txtPRent"),
    _text("rental_duration", "#ContentPlaceHolder1_txtPDuration"),
    _select("property_type", "#ContentPlaceHolder1_ddlPType"),
)

LANDLORD_DETAILS: Tuple[PlanStep, ...] = (
    _text("landlord_first_name", "#ContentPlaceHolder1_txtLFirstName"),
    _text("landlord_middle_name", "#ContentPlaceHolder1_txtLMIddleName"),
    _text("landlord_last_name", "#ContentPlaceHolder1_txtLLastName"),
    _text("landlord_father_first", "#ContentPlaceHolder1_txtLFirstFName"),
    _text("landlord_father_middle", "#ContentPlaceHolder1_txtLMIddleFName"),
    _text("landlord_father_last", "#ContentPlaceHolder1_txtLLastFName"),
    _text("landlord_mobile", "#ContentPlaceHolder1_txtlandMobno", "#ContentPlaceHolder1_txtLPhone"),
    _text("landlord_address", "#ContentPlaceHolder1_txtlandPAddress", "#ContentPlaceHolder1_txtLAddress"),
)

LANDLORD_LOCATION = CascadeSpec(
    "landlord_location",
    (
        _select(
            "landlord_police_district",
            "#ContentPlaceHolder1_ddlLdistrict",
            "#ContentPlaceHolder1_ddlLDistrict",
        ),
        _select(
            "landlord_police_station",
            "#ContentPlaceHolder1_ddlLStation",
            "#ContentPlaceHolder1_ddlLPoliceStation",
        ),
    ),
)

REFERRAL: Tuple[PlanStep, ...] = (
    _text("referenced_by", "#ContentPlaceHolder1_txtLRefer"),
)

# Full fill order: tenant fields, location cascade, landlord and optional fields
FILL_PLAN: Tuple[PlanStep, ...] = (
    TENANT_IDENTITY
    + TENANT_DETAILS
    + (TENANT_LOCATION,)
    + ADDRESS_AND_PROPERTY
    + LANDLORD_DETAILS
    + (LANDLORD_LOCATION,)
    + REFERRAL
)

PASSPORT_PHOTO = FileSpec("passport_photo_url", "#ContentPlaceHolder1_flTPhoto")
ID_PHOTO = FileSpec("combined_id_photo_url", "#ContentPlaceHolder1_flTPhotoId")

SUBMIT_BUTTON = "#ContentPlaceHolder1_btnTSave, #ContentPlaceHolder1_btnSubmit"

ERROR_SUMMARY = ".validation-summary,.ValidationSummary"
ERROR_TEXT_PATTERN = re.compile(r"required|invalid|please select|enter", re.IGNORECASE)

REFERENCE_SELECTORS = (
    "#ContentPlaceHolder1_lblRefNo",
    "#ContentPlaceHolder1_lblTRefNo",
    "#lblRefNo",
    "#lblReference",
)
REFERENCE_LABEL_PATTERN = re.compile(
    r"Ref(?:erence)?\s*No\.?\s*[:\-]?\s*([A-Za-z0-9/\-]+)", re.IGNORECASE
)
REFERENCE_TOKEN_PATTERN = re.compile(r"([A-Za-z0-9/\-]+)")
