import pytest

from errors import SubmissionTimeout
from fakes import PLACEHOLDER, FakeElement, FakePage, build_form_page
from form_filler import (
    FormFiller,
    fill_if_exists,
    first_existing,
    safe_select,
    select_if_exists,
    select_with_postback,
)
from form_layout import FILL_PLAN, LANDLORD_LOCATION, TENANT_LOCATION

STATE = "#ContentPlaceHolder1_ddlTState"
DISTRICT = "#ContentPlaceHolder1_ddlTDistrict"
STATION = "#ContentPlaceHolder1_ddlTStation"


async def test_first_existing_follows_priority_order():
    page = FakePage({"#b": FakeElement(), "#c": FakeElement()})
    assert await first_existing(page, ["#a", "#b", "#c"]) == "#b"
    assert await first_existing(page, ["#x", "#y"]) is None


async def test_fills_second_candidate_when_first_is_missing():
    page = FakePage({"#ContentPlaceHolder1_txtTPhone": FakeElement()})
    used = await fill_if_exists(
        page, ["#ContentPlaceHolder1_txtTtntNo", "#ContentPlaceHolder1_txtTPhone"], "9876543210"
    )

    assert used == "#ContentPlaceHolder1_txtTPhone"
    assert page.elements["#ContentPlaceHolder1_txtTPhone"].value == "9876543210"
    assert page.calls == [
        ("fill", "#ContentPlaceHolder1_txtTPhone", ""),
        ("type", "#ContentPlaceHolder1_txtTPhone", "9876543210"),
    ]


async def test_text_field_is_cleared_before_typing():
    page = FakePage({"#name": FakeElement()})
    page.elements["#name"].value = "stale"
    await fill_if_exists(page, ["#name"], "Priya")
    assert page.elements["#name"].value == "Priya"


@pytest.mark.parametrize("value", ["", None])
async def test_empty_value_is_a_no_op(value):
    page = FakePage({"#name": FakeElement(), "#kind": FakeElement("select", [PLACEHOLDER])})
    assert await fill_if_exists(page, ["#name"], value) is None
    assert await select_if_exists(page, ["#kind"], value) is None
    assert page.calls == []


async def test_missing_field_is_silently_skipped():
    page = FakePage()
    assert await fill_if_exists(page, ["#nowhere"], "value") is None
    assert await select_if_exists(page, ["#nowhere"], "value") is None


async def test_select_prefers_label():
    page = FakePage({"#id": FakeElement("select", [PLACEHOLDER, ("Aadhar Card", "1")])})
    await safe_select(page, "#id", "Aadhar Card")
    assert page.elements["#id"].value == "1"


async def test_select_falls_back_to_value_when_label_does_not_match():
    page = FakePage({"#id": FakeElement("select", [PLACEHOLDER, ("Aadhar Card", "AADHAR")])})
    await safe_select(page, "#id", "AADHAR")
    assert page.elements["#id"].value == "AADHAR"


async def test_postback_select_waits_for_dependent_options():
    page = FakePage({
        STATE: FakeElement("select", [PLACEHOLDER, ("RAJASTHAN", "29")]),
        DISTRICT: FakeElement("select", [PLACEHOLDER]),
    })

    def reload_districts(p, value):
        p.elements[DISTRICT].options.append(("JAIPUR", "JP"))

    page.elements[STATE].on_select = reload_districts
    await select_with_postback(page, STATE, "RAJASTHAN", DISTRICT)

    assert page.calls == [
        ("select", STATE, "29"),
        ("load_state", "networkidle"),
        ("wait_for_function", DISTRICT),
    ]


async def test_postback_select_times_out_when_options_never_load():
    page = FakePage({
        STATE: FakeElement("select", [PLACEHOLDER, ("RAJASTHAN", "29")]),
        DISTRICT: FakeElement("select", [PLACEHOLDER]),
        STATION: FakeElement("select", [PLACEHOLDER], accept_any=True),
    })
    values = {
        "tenant_state": "RAJASTHAN",
        "tenant_police_district": "JAIPUR",
        "tenant_police_station": "VAISHALI NAGAR",
    }

    with pytest.raises(SubmissionTimeout):
        await FormFiller(page).fill_cascade(TENANT_LOCATION, values)

    # Nothing below the state was touched
    assert page.elements[DISTRICT].value == ""
    assert page.elements[STATION].value == ""


async def test_tenant_cascade_runs_in_order():
    page = build_form_page()
    values = {
        "tenant_state": "RAJASTHAN",
        "tenant_police_district": "JAIPUR",
        "tenant_police_station": "VAISHALI NAGAR",
    }
    filler = FormFiller(page)
    await filler.fill_cascade(TENANT_LOCATION, values)

    selects = [c for c in page.calls if c[0] == "select"]
    assert [c[1] for c in selects] == [STATE, DISTRICT, STATION]
    assert filler.filled == ["tenant_state", "tenant_police_district", "tenant_police_station"]


async def test_cascade_skipped_when_head_control_missing():
    page = FakePage({DISTRICT: FakeElement("select", [PLACEHOLDER], accept_any=True)})
    filler = FormFiller(page)
    await filler.fill_cascade(TENANT_LOCATION, {"tenant_state": "RAJASTHAN"})
    assert page.calls == []
    assert filler.filled == []


async def test_cascade_stops_when_intermediate_value_missing():
    page = build_form_page()
    filler = FormFiller(page)
    await filler.fill_cascade(TENANT_LOCATION, {"tenant_state": "RAJASTHAN"})
    assert filler.filled == ["tenant_state"]


async def test_landlord_cascade_uses_alternate_selectors():
    page = FakePage({
        "#ContentPlaceHolder1_ddlLDistrict": FakeElement("select", [PLACEHOLDER], accept_any=True),
        "#ContentPlaceHolder1_ddlLPoliceStation": FakeElement("select", [PLACEHOLDER], accept_any=True),
    })

    def reload_stations(p, value):
        p.elements["#ContentPlaceHolder1_ddlLPoliceStation"].options.append(("RAMNAGARIYA", "RN"))

    page.elements["#ContentPlaceHolder1_ddlLDistrict"].on_select = reload_stations
    values = {"landlord_police_district": "JAIPUR EAST", "landlord_police_station": "RAMNAGARIYA"}
    await FormFiller(page).fill_cascade(LANDLORD_LOCATION, values)

    assert page.elements["#ContentPlaceHolder1_ddlLDistrict"].value == "JAIPUR EAST"
    assert page.elements["#ContentPlaceHolder1_ddlLPoliceStation"].value == "RN"


async def test_full_plan_fills_text_and_select_fields():
    page = build_form_page()
    values = {
        "id_type": "Aadhar Card",
        "first_name": "Priya",
        "phone": "9876543210",
        "gender": "Female",
        "tenant_state": "RAJASTHAN",
        "tenant_police_district": "JAIPUR",
        "tenant_police_station": "VAISHALI NAGAR",
        "landlord_first_name": "ZZZ",
        "landlord_police_district": "JAIPUR EAST",
        "landlord_police_station": "RAMNAGARIYA",
    }
    filled = await FormFiller(page).run(FILL_PLAN, values)

    assert page.elements["#ContentPlaceHolder1_txtTFirstName"].value == "Priya"
    assert page.elements["#ContentPlaceHolder1_txtTtntNo"].value == "9876543210"
    assert page.elements["#ContentPlaceHolder1_ddlTSex"].value == "Female"
    assert page.elements["#ContentPlaceHolder1_ddlLStation"].value == "RAMNAGARIYA"
    assert "middle_name" not in filled
    assert filled.index("tenant_police_station") < filled.index("landlord_first_name")
