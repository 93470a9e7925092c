import pytest

from config import Settings


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.delenv("NODE_ENV", raising=False)
    monkeypatch.delenv("BROWSER_PLAYWRIGHT_ENDPOINT", raising=False)
    s = Settings()
    s.headless = True
    s.node_env = "test"
    s.browser_max_retries = 3
    s.browser_retry_delay_ms = 2000
    s.browser_timeout_ms = 1000
    s.submit_change_timeout_ms = 1000
    s.debug_dir = str(tmp_path / "dbg_imgs")
    return s


@pytest.fixture
def valid_payload():
    return {
        "id_type": "Aadhar Card",
        "id_number": "123412341234",
        "first_name": "Priya",
        "last_name": "Sharma",
        "father_first_name": "Rakesh",
        "father_last_name": "Sharma",
        "caste": "General",
        "date_of_birth": "15-06-2000",
        "tenant_state": "RAJASTHAN",
        "tenant_police_district": "JAIPUR",
        "tenant_police_station": "VAISHALI NAGAR",
        "phone": "9876543210",
        "permanent_address": "12 Civil Lines, Ajmer",
        "passport_photo_url": "/tmp/passport.jpg",
    }
