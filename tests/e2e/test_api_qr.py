"""
test_api_qr.py - QR proxy API E2E (NBS API mocked)

Endpoints:
- POST /api/qr/gen
- POST /api/qr/generate
- POST /api/qr/validate
- POST /api/qr/upload
- POST /api/qr/payload
"""

import base64

import httpx
from fastapi.testclient import TestClient

from ipsqr.app.context import AppContext
from ipsqr.domain.constants import UPLOAD_MAX_SIZE_BYTES
from ipsqr.domain.errors import ErrorCodes

PNG = b"\x89PNG\r\n\x1a\nfake"

FIELDS = {"K": "PR", "V": "01", "C": "1", "R": "845000000040484987", "N": "JP EPS BEOGRAD"}


class TestGen:

    def test_image_passthrough(self, client: TestClient, bank):
        bank.handler = lambda request: httpx.Response(
            200, content=PNG, headers={"content-type": "image/png"}
        )

        response = client.post("/api/qr/gen", json=FIELDS, params={"size": 300})

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == PNG
        assert bank.requests[0].url.path.endswith("/gen/300")

    def test_uses_active_language(self, client: TestClient, bank):
        client.post("/api/qr/gen", json=FIELDS)

        assert bank.requests[0].url.params["lang"] == "sr_RS_Latn"

    def test_missing_required_fields(self, client: TestClient, bank):
        response = client.post("/api/qr/gen", json={"K": "PR"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == ErrorCodes.MISSING_REQUIRED_FIELD
        assert bank.requests == []

    def test_bank_error_json(self, client: TestClient, bank, context: AppContext):
        bank.handler = lambda request: httpx.Response(
            400, json={"s": {"code": 1, "desc": "Neispravan račun"}}
        )

        response = client.post("/api/qr/gen", json=FIELDS)

        body = response.json()
        assert body["apiOk"] is False
        assert body["status"] == 400
        assert context.notifications.recent()[-1].message == "Neispravan račun"


class TestTextEndpoints:

    def test_validate(self, client: TestClient, bank):
        bank.handler = lambda request: httpx.Response(
            200, json={"s": {"code": 0, "desc": "Validan"}, "t": request.content.decode()}
        )

        response = client.post(
            "/api/qr/validate",
            content="K:PR|V:01",
            headers={"content-type": "text/plain"},
            params={"lang": "en"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["apiOk"] is True
        assert body["data"]["t"] == "K:PR|V:01"
        assert bank.requests[0].url.params["lang"] == "en"

    def test_generate(self, client: TestClient, bank):
        image = base64.b64encode(PNG).decode()
        bank.handler = lambda request: httpx.Response(
            200, json={"s": {"code": 0}, "i": image}
        )

        response = client.post(
            "/api/qr/generate",
            content="K:PR|V:01",
            headers={"content-type": "text/plain"},
            params={"size": 400},
        )

        assert response.json()["data"]["i"] == image
        assert bank.requests[0].url.path.endswith("/generate/400")

    def test_empty_text(self, client: TestClient, bank):
        response = client.post(
            "/api/qr/validate", content="  ", headers={"content-type": "text/plain"}
        )

        assert response.status_code == 400
        assert bank.requests == []

    def test_invalid_utf8_text(self, client: TestClient, bank):
        response = client.post(
            "/api/qr/validate",
            content=b"K:PR|N:\xff\xfe",
            headers={"content-type": "text/plain"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == ErrorCodes.INVALID_ENCODING
        assert bank.requests == []


class TestUpload:

    def test_upload(self, client: TestClient, bank):
        response = client.post(
            "/api/qr/upload",
            files={"file": ("qr.png", PNG, "image/png")},
        )

        assert response.status_code == 200
        assert response.json()["apiOk"] is True
        assert bank.requests[0].url.path.endswith("/upload")

    def test_wrong_type(self, client: TestClient, bank):
        response = client.post(
            "/api/qr/upload",
            files={"file": ("qr.gif", b"GIF89a", "image/gif")},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == ErrorCodes.INVALID_UPLOAD_TYPE
        assert bank.requests == []

    def test_too_large(self, client: TestClient, bank):
        response = client.post(
            "/api/qr/upload",
            files={"file": ("qr.png", b"x" * (UPLOAD_MAX_SIZE_BYTES + 1), "image/png")},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == ErrorCodes.UPLOAD_TOO_LARGE


class TestFailures:

    def test_timeout_is_504(self, client: TestClient, bank, context: AppContext):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        bank.handler = handler

        response = client.post(
            "/api/qr/validate", content="K:PR", headers={"content-type": "text/plain"}
        )

        assert response.status_code == 504
        assert response.json()["detail"]["code"] == ErrorCodes.TIMEOUT
        assert len(bank.requests) == 1
        assert context.notifications.recent()[-1].level == "error"

    def test_network_error_is_502(self, client: TestClient, bank):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        bank.handler = handler

        response = client.post("/api/qr/gen", json=FIELDS)

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == ErrorCodes.NETWORK_ERROR
        assert len(bank.requests) == 1


class TestPayload:

    def test_build(self, client: TestClient, bank):
        response = client.post("/api/qr/payload", json={**FIELDS, "S": "Line 1\nLine 2"})

        body = response.json()
        assert body["text"].startswith("K:PR|V:01|C:1|")
        assert "S:Line 1\r\nLine 2" in body["text"]
        assert body["fields"]["N"] == "JP EPS BEOGRAD"
        assert bank.requests == []
