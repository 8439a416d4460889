import pytest

from ..config import POWER_MONTHLY_URL, POWER_TIMEOUT
from ..errors import ClimateDataError
from ..utils import power_api
from ..utils.power_api import fetch_power_api


class FakeResponse:
    def __init__(self, ok=True, status_code=200, reason="OK", text="", body=None):
        self.ok = ok
        self.status_code = status_code
        self.reason = reason
        self.text = text
        self.body = body

    def json(self):
        return self.body


@pytest.fixture
def sent(monkeypatch):
    """Captures the last GET and answers with whatever response is queued."""
    captured = {"response": FakeResponse(body={"properties": {"parameter": {}}})}

    def fake_get(url, params, timeout):
        captured.update(url=url, params=params, timeout=timeout)
        return captured["response"]

    monkeypatch.setattr(power_api.requests, "get", fake_get)
    return captured


def test_request_parameters(sent):
    result = fetch_power_api(2020, 2021, 23.78, 90.4, ["T2M", "PRECTOTCORR"])

    assert result == {"properties": {"parameter": {}}}
    assert sent["url"] == POWER_MONTHLY_URL
    assert sent["timeout"] == POWER_TIMEOUT
    assert sent["params"] == {
        "parameters": "T2M,PRECTOTCORR",
        "community": "AG",
        "longitude": 90.4,
        "latitude": 23.78,
        "start": 2020,
        "end": 2021,
        "format": "JSON",
    }


def test_community_can_be_overridden(sent):
    fetch_power_api(2020, 2020, 0, 0, ["T2M"], community="RE")
    assert sent["params"]["community"] == "RE"


def test_error_response_raises_with_details(sent):
    sent["response"] = FakeResponse(
        ok=False, status_code=400, reason="Bad Request", text="start year out of range"
    )

    with pytest.raises(ClimateDataError) as excinfo:
        fetch_power_api(1970, 1971, 0, 0, ["T2M"])

    message = str(excinfo.value)
    assert "400" in message
    assert "Bad Request" in message
    assert "start year out of range" in message
