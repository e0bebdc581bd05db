"""
Tests for OCR field extraction and the upload route.
"""
from decimal import Decimal

from junket.api.routes import ocr as ocr_routes
from junket.services.ocr_service import OCRError, OCRExtraction, extract_session_fields

SLIP = """Grand Lisboa VIP
Venue: Grand Lisboa
Table No. B12
Baccarat
2026-03-02 21:40
Rolling: HK$ 100,000
Win/Loss: (5,000)
Buy-in: 50,000
Buy-out: 45,000
"""


def test_extracts_all_session_figures():
    extraction = extract_session_fields(SLIP)

    assert extraction.confidence == 1.0
    assert extraction.amount("rolling_amount") == Decimal("100000")
    assert extraction.amount("win_loss") == Decimal("-5000")
    assert extraction.amount("buy_in_amount") == Decimal("50000")
    assert extraction.amount("buy_out_amount") == Decimal("45000")
    assert extraction.fields["table_number"] == "B12"
    assert extraction.fields["venue"] == "Grand Lisboa"
    assert extraction.fields["game_type"] == "Baccarat"
    assert extraction.fields["date"] == "2026-03-02"


def test_partial_slip_has_lower_confidence():
    extraction = extract_session_fields("Rolling 20000")

    assert extraction.confidence == 0.25
    assert extraction.amount("win_loss") is None


def test_unreadable_text():
    extraction = extract_session_fields("")

    assert extraction.confidence == 0
    assert extraction.fields == {}


def test_parse_route(client, make_user, monkeypatch):
    headers = make_user("floor", "staff")

    async def fake_parse(content, filename):
        return OCRExtraction(text="Rolling: 1,000", confidence=0.25, engine="ocrspace", fields={"rolling_amount": "1000"})

    monkeypatch.setattr(ocr_routes, "parse_session_image", fake_parse)
    response = client.post(
        "/api/ocr/parse",
        files={"file": ("slip.png", b"fake-image", "image/png")},
        headers=headers
    )

    assert response.status_code == 200
    assert Decimal(response.json()["rolling_amount"]) == 1000
    assert response.json()["win_loss"] is None


def test_parse_route_provider_failure(client, admin_headers, monkeypatch):
    async def failing_parse(content, filename):
        raise OCRError("OCR provider is unreachable")

    monkeypatch.setattr(ocr_routes, "parse_session_image", failing_parse)
    response = client.post(
        "/api/ocr/parse",
        files={"file": ("slip.png", b"fake-image", "image/png")},
        headers=admin_headers
    )

    assert response.status_code == 502


def test_parse_route_rejects_non_image(client, admin_headers):
    response = client.post(
        "/api/ocr/parse",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers
    )

    assert response.status_code == 400
