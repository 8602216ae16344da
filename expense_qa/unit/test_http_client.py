import json

import httpx
import pytest

from expense_qa.api_testing.framework.http_client import (
    MAX_RESPONSE_LENGTH,
    HttpClient,
    HttpClientError,
    enable_logging_of_request_and_response_if_validation_fails,
    last_exchange,
    log_last_exchange_for_failure,
)
from expense_qa.api_testing.framework.specification import (
    LogDetail,
    ResponseSpecBuilder,
    default_request_spec,
)


BASE_URL = "http://localhost:3030"


def test_redact_headers_masks_sensitive_values():
    client = object.__new__(HttpClient)  # bypass __init__
    masked = client._redact_headers(
        {
            "Authorization": "Bearer secret-token",
            "x-api-key": "apikey",
            "Cookie": "session=abc",
            "X-Other": "keep",
        }
    )
    assert masked["Authorization"] == "***MASKED***"
    assert masked["x-api-key"] == "***MASKED***"
    assert masked["Cookie"] == "***MASKED***"
    assert masked["X-Other"] == "keep"


def test_redact_body_masks_sensitive_fields():
    client = object.__new__(HttpClient)
    payload = {
        "email": "apitest@restassured.com",
        "password": "p1",
        "data": {"token": "tok", "descripcion": "Alquiler"},
        "items": [{"api_key": "k1"}, {"monto": 10}],
    }
    redacted = client._redact_body(payload)

    assert redacted["email"] == "apitest@restassured.com"
    assert redacted["password"] == "***MASKED***"
    assert redacted["data"]["token"] == "***MASKED***"
    assert redacted["data"]["descripcion"] == "Alquiler"
    assert redacted["items"][0]["api_key"] == "***MASKED***"
    assert redacted["items"][1]["monto"] == 10


def test_request_outside_context_manager_raises():
    client = HttpClient(default_request_spec(BASE_URL))

    with pytest.raises(HttpClientError):
        client.get("/api/gastos")


def test_spec_headers_and_base_url_are_applied(mock_transport, recorded_requests):
    spec = default_request_spec(BASE_URL).with_header("Authorization", "Bearer t.o.k")

    with HttpClient(spec, transport=mock_transport(200)) as client:
        client.post("/api/gastos-unicos", json={"descripcion": "Notebook"})

    request = recorded_requests[0]
    assert request.method == "POST"
    assert request.url == f"{BASE_URL}/api/gastos-unicos"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Accept"] == "application/json"
    assert request.headers["Authorization"] == "Bearer t.o.k"
    assert json.loads(request.content) == {"descripcion": "Notebook"}


def test_last_exchange_is_recorded_redacted(mock_transport):
    spec = default_request_spec(BASE_URL).with_header("Authorization", "Bearer secret")

    with HttpClient(spec, transport=mock_transport(201, json={"data": {"id": 7}})) as client:
        client.post("/api/auth/login", json={"email": "a@b.c", "password": "pw"})

    exchange = last_exchange()
    assert exchange.method == "POST"
    assert exchange.status_code == 201
    assert exchange.url == f"{BASE_URL}/api/auth/login"
    assert exchange.request_headers["Authorization"] == "***MASKED***"
    assert exchange.request_body == {"email": "a@b.c", "password": "***MASKED***"}
    assert json.loads(exchange.response_body) == {"data": {"id": 7}}


def test_query_params_are_part_of_recorded_url(mock_transport):
    with HttpClient(default_request_spec(BASE_URL), transport=mock_transport(200)) as client:
        client.get("/api/debitos-automaticos", params={"activo": "true"})

    assert last_exchange().url == f"{BASE_URL}/api/debitos-automaticos?activo=true"


def test_response_spec_expectation_failure_raises(mock_transport):
    response_spec = ResponseSpecBuilder().expect_status_code(200).build()

    with HttpClient(
        default_request_spec(BASE_URL), response_spec, transport=mock_transport(500)
    ) as client:
        with pytest.raises(AssertionError, match="Expected status code 200 but got 500"):
            client.get("/api/gastos")


def test_no_logging_when_log_detail_is_none(mock_transport, log_messages):
    spec = default_request_spec(BASE_URL).with_log_detail(LogDetail.NONE)
    response_spec = ResponseSpecBuilder().log(LogDetail.NONE).build()

    with HttpClient(spec, response_spec, transport=mock_transport(200)) as client:
        client.get("/api/gastos")

    assert not any(m.startswith(("Request:", "Response:")) for m in log_messages)


def test_full_logging_masks_authorization(mock_transport, log_messages):
    spec = default_request_spec(BASE_URL).with_header("Authorization", "Bearer secret")

    with HttpClient(spec, transport=mock_transport(200)) as client:
        client.get("/api/gastos")

    assert f"Request: GET {BASE_URL}/api/gastos" in log_messages
    assert any(m.startswith("Response: 200") for m in log_messages)
    assert not any("Bearer secret" in m for m in log_messages)


def test_failure_dump_only_when_enabled(mock_transport, log_messages):
    with HttpClient(default_request_spec(BASE_URL), transport=mock_transport(404)) as client:
        client.get("/api/gastos-unicos/999999")

    log_last_exchange_for_failure()
    assert not any(m.startswith("Validation failed") for m in log_messages)

    enable_logging_of_request_and_response_if_validation_fails()
    log_last_exchange_for_failure()
    dumps = [m for m in log_messages if m.startswith("Validation failed")]
    assert len(dumps) == 1
    assert "GET http://localhost:3030/api/gastos-unicos/999999" in dumps[0]
    assert "Status: 404" in dumps[0]


def test_long_bodies_are_truncated_in_failure_dump(mock_transport):
    long_text = "x" * (MAX_RESPONSE_LENGTH + 500)

    def handler(request):
        return httpx.Response(500, text=long_text)

    with HttpClient(
        default_request_spec(BASE_URL), transport=mock_transport(handler=handler)
    ) as client:
        client.get("/api/gastos")

    described = last_exchange().describe()
    assert "Truncated" in described
    assert long_text not in described


def test_build_curl_includes_method_headers_and_body():
    client = object.__new__(HttpClient)

    curl = client._build_curl(
        "PUT",
        f"{BASE_URL}/api/gastos-recurrentes/3",
        {"Authorization": "***MASKED***"},
        {"activo": False},
    )

    assert curl.startswith("curl -X PUT")
    assert "-H 'Authorization: ***MASKED***'" in curl
    assert "-d '{\"activo\": false}'" in curl
    assert curl.endswith(f"'{BASE_URL}/api/gastos-recurrentes/3'")
