"""
BlueCarbon Registry - REST API Tests
======================================
Endpoint tests via FastAPI TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from blue_carbon.api import create_app


@pytest.fixture
def client(test_config, registry):
    """Client su registry di test (entrambi i backend)"""
    app = create_app(test_config, registry=registry)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seeded_client(client, registry):
    registry.seed()
    return client


@pytest.fixture
def project_payload():
    return {
        "name": "API Mangrove",
        "description": "Registered through the API",
        "projectType": "mangrove",
        "area": 50,
        "latitude": 9.9312,
        "longitude": 76.2673,
        "location": "Kochi",
        "developerId": "0xDEV",
    }


def register_and_verify(client, payload) -> str:
    project_id = client.post("/api/projects", json=payload).json()["id"]
    client.post(f"/api/projects/{project_id}/verify", json={"decision": "approve"})
    return project_id


class TestHealth:
    """Test /health"""

    def test_health(self, client):
        """Test health payload"""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "1.0.0"
        assert "storageBackend" in data

    def test_request_id_header(self, client):
        """Test X-Request-ID echo and security headers"""
        response = client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Process-Time" in response.headers


class TestProjectEndpoints:
    """Test /api/projects"""

    def test_register_project(self, client, project_payload):
        """Test POST creates pending project"""
        response = client.post("/api/projects", json=project_payload)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["verifiedAt"] is None
        assert data["area"] == "50"

    def test_register_missing_field(self, client, project_payload):
        """Test 400 with field details"""
        del project_payload["name"]
        response = client.post("/api/projects", json=project_payload)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "VALIDATION_FAILED"
        assert any(f["field"] == "name" for f in data["details"]["fields"])

    def test_verify_project(self, client, project_payload):
        """Test approve then second verify fails"""
        project_id = client.post("/api/projects", json=project_payload).json()["id"]

        response = client.post(f"/api/projects/{project_id}/verify", json={"decision": "approve"})
        assert response.status_code == 200
        assert response.json()["status"] == "verified"
        assert response.json()["verifiedAt"] is not None

        again = client.post(f"/api/projects/{project_id}/verify", json={"decision": "reject"})
        assert again.status_code == 400
        assert again.json()["error"] == "PROJECT_NOT_PENDING"

    def test_status_patch(self, client, project_payload):
        """Test PATCH /status uses the same rules"""
        project_id = client.post("/api/projects", json=project_payload).json()["id"]

        response = client.patch(f"/api/projects/{project_id}/status", json={"status": "rejected"})
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

    def test_get_missing_project(self, client):
        """Test 404"""
        response = client.get("/api/projects/nope")

        assert response.status_code == 404
        assert response.json()["error"] == "PROJECT_NOT_FOUND"

    def test_list_filters(self, seeded_client, project_payload):
        """Test type/status query filters"""
        seeded_client.post("/api/projects", json=project_payload)

        assert len(seeded_client.get("/api/projects").json()) == 4
        assert len(seeded_client.get("/api/projects", params={"status": "pending"}).json()) == 1
        assert len(seeded_client.get("/api/projects", params={"type": "seagrass"}).json()) == 1


class TestCreditEndpoints:
    """Test /api/credits"""

    def test_mint_purchase_retire(self, client, project_payload):
        """Test full credit lifecycle over HTTP"""
        project_id = register_and_verify(client, project_payload)

        minted = client.post("/api/credits/mint", json={
            "projectId": project_id, "amount": 100, "price": "20.00", "ownerId": "0xA",
        })
        assert minted.status_code == 201
        credit = minted.json()["credit"]
        assert credit["status"] == "available"
        assert minted.json()["transaction"]["type"] == "minting"

        bought = client.post(f"/api/credits/{credit['id']}/purchase", json={"buyerId": "0xB"})
        assert bought.status_code == 200
        assert bought.json()["credit"]["ownerId"] == "0xB"
        assert bought.json()["transaction"]["amount"] == 100
        assert bought.json()["transaction"]["price"] == "20.00"

        retired = client.post(f"/api/credits/{credit['id']}/retire", json={"retiredBy": "0xB"})
        assert retired.status_code == 200
        assert retired.json()["credit"]["status"] == "retired"

        again = client.patch(f"/api/credits/{credit['id']}/retire", json={"retiredBy": "0xB"})
        assert again.status_code == 400
        assert again.json()["error"] == "CREDIT_ALREADY_RETIRED"

    def test_mint_from_pending_project(self, client, project_payload):
        """Test 400 PROJECT_NOT_VERIFIED"""
        project_id = client.post("/api/projects", json=project_payload).json()["id"]

        response = client.post("/api/credits/mint", json={
            "projectId": project_id, "amount": 10, "pricePerCredit": 5, "ownerId": "0xA",
        })
        assert response.status_code == 400
        assert response.json()["error"] == "PROJECT_NOT_VERIFIED"

    def test_purchase_amount_out_of_range(self, seeded_client):
        """Test 400 AMOUNT_OUT_OF_RANGE"""
        response = seeded_client.post(
            "/api/credits/credit-1/purchase", json={"buyerId": "user-2", "amount": 500}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "AMOUNT_OUT_OF_RANGE"

    def test_available_and_owner_lists(self, seeded_client):
        """Test list endpoints"""
        assert len(seeded_client.get("/api/credits/available").json()) == 3
        assert len(seeded_client.get("/api/credits/owner/user-1").json()) == 3
        assert len(seeded_client.get("/api/credits", params={"project": "project-2"}).json()) == 1

    def test_missing_credit(self, client):
        """Test 404"""
        response = client.post("/api/credits/nope/retire", json={"retiredBy": "0xA"})
        assert response.status_code == 404
        assert response.json()["error"] == "CREDIT_NOT_FOUND"


class TestTransactionEndpoints:
    """Test /api/transactions"""

    def test_history(self, seeded_client):
        """Test ledger listing and user filter"""
        seeded_client.post("/api/credits/credit-1/purchase", json={"buyerId": "user-2"})
        seeded_client.post("/api/credits/credit-1/retire", json={"retiredBy": "user-2"})

        all_tx = seeded_client.get("/api/transactions").json()
        assert [tx["type"] for tx in all_tx] == ["retirement", "purchase"]

        purchases = seeded_client.get("/api/transactions", params={"type": "purchase"}).json()
        assert len(purchases) == 1

        user_tx = seeded_client.get("/api/transactions/user/user-2").json()
        assert len(user_tx) == 2


class TestSensorEndpoints:
    """Test /api/sensor-data"""

    def test_record_and_list(self, seeded_client):
        """Test ingestion and newest-first listing"""
        response = seeded_client.post("/api/sensor-data", json={
            "projectId": "project-1", "sensorType": "co2", "value": 2.7, "unit": "t/ha/yr",
        })
        assert response.status_code == 201

        readings = seeded_client.get("/api/sensor-data/project-1").json()
        assert len(readings) == 4
        assert readings[0]["value"] == "2.7"

        latest = seeded_client.get("/api/sensor-data/project-1/co2/latest")
        assert latest.status_code == 200
        assert latest.json()["value"] == "2.7"

    def test_latest_missing(self, seeded_client):
        """Test 404 when no reading of that type"""
        response = seeded_client.get("/api/sensor-data/project-1/weather/latest")
        assert response.status_code == 404

    def test_unknown_project(self, client):
        """Test 404 for missing project"""
        response = client.post("/api/sensor-data", json={
            "projectId": "nope", "sensorType": "co2", "value": 1, "unit": "u",
        })
        assert response.status_code == 404


class TestUserEndpoints:
    """Test /api/users"""

    def test_register_and_get(self, client):
        """Test user CRUD"""
        created = client.post("/api/users", json={"username": "carol", "walletAddress": "0xC"})
        assert created.status_code == 201

        user_id = created.json()["id"]
        assert client.get(f"/api/users/{user_id}").json()["username"] == "carol"
        assert len(client.get("/api/users").json()) == 1

        duplicate = client.post("/api/users", json={"username": "carol"})
        assert duplicate.status_code == 400


class TestAnalyticsEndpoints:
    """Test /api/analytics"""

    def test_empty(self, client):
        """Test zeroed market stats"""
        assert client.get("/api/analytics/market").json() == {
            "totalCredits": 0, "avgPrice": "0.00", "totalTrades": 0, "marketValue": 0,
        }

    def test_seeded(self, seeded_client):
        """Test demo dataset stats"""
        projects = seeded_client.get("/api/analytics/projects").json()
        assert projects == {
            "totalProjects": 3, "verifiedProjects": 3, "creditsIssued": 406, "co2Sequestered": 406,
        }
        market = seeded_client.get("/api/analytics/market").json()
        assert market["avgPrice"] == "17.83"
        assert market["totalCredits"] == 406


class TestWeb3Endpoints:
    """Test /api/web3"""

    def test_connect_wallet(self, client):
        """Test simulated wallet session"""
        response = client.post("/api/web3/connect", json={"walletAddress": "0xabc"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["walletAddress"] == "0xabc"
        assert data["network"] == "Ethereum Mainnet"

    def test_web3_mint(self, client, registry, project_payload):
        """Test simulated mint with default price"""
        project_id = register_and_verify(client, project_payload)

        response = client.post("/api/web3/mint", json={
            "projectId": project_id, "amount": 10, "ownerId": "0xA",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["txHash"].startswith("0x")

        credit = registry.credits.get_credit(data["creditId"])
        assert str(credit.price) == "18.50"
        assert credit.token_id == data["tokenId"]


class TestTransferEndpoint:
    """Test PATCH /api/credits/{id}/transfer"""

    def test_transfer_whole_lot(self, seeded_client):
        """Test transfer goes through purchase rules"""
        response = seeded_client.patch("/api/credits/credit-2/transfer", json={"newOwnerId": "user-2"})

        assert response.status_code == 200
        assert response.json()["ownerId"] == "user-2"

        purchases = seeded_client.get("/api/transactions", params={"type": "purchase"}).json()
        assert len(purchases) == 1
        assert purchases[0]["amount"] == 78
        assert purchases[0]["creditId"] == "credit-2"

    def test_transfer_retired_credit(self, seeded_client):
        """Test retired lot cannot change owner"""
        seeded_client.post("/api/credits/credit-2/retire", json={"retiredBy": "user-1"})

        response = seeded_client.patch("/api/credits/credit-2/transfer", json={"newOwnerId": "user-2"})
        assert response.status_code == 400
        assert response.json()["error"] == "CREDIT_ALREADY_RETIRED"
        assert seeded_client.get("/api/credits/credit-2").json()["ownerId"] == "user-1"

    def test_transfer_missing_credit(self, client):
        """Test 404"""
        response = client.patch("/api/credits/nope/transfer", json={"newOwnerId": "user-2"})
        assert response.status_code == 404


class TestUserLookups:
    """Test /api/users/username and /api/users/wallet"""

    def test_lookup_by_username_and_wallet(self, client):
        """Test both lookups and 404"""
        client.post("/api/users", json={"username": "dana", "walletAddress": "0xD4"})

        assert client.get("/api/users/username/dana").json()["walletAddress"] == "0xD4"
        assert client.get("/api/users/wallet/0xD4").json()["username"] == "dana"

        missing = client.get("/api/users/username/nobody")
        assert missing.status_code == 404
        assert missing.json()["error"] == "USER_NOT_FOUND"


class TestErrorContract:
    """Test error body schema and unhandled errors"""

    def test_openapi_documents_error_response(self, client):
        """Test 400/404 responses reference ErrorResponse"""
        schema = client.get("/openapi.json").json()

        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/api/credits/{credit_id}/retire"]["post"]["responses"]
        assert responses["404"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
        assert "400" in responses

    def test_unhandled_error_returns_500(self, test_config, registry):
        """Test unexpected exception -> INTERNAL_ERROR body"""
        app = create_app(test_config, registry=registry)

        @app.get("/boom")
        def boom():
            raise RuntimeError("boom")

        with TestClient(app) as test_client:
            response = test_client.get("/boom", headers={"X-Request-ID": "req-500"})

        assert response.status_code == 500
        assert response.json()["error"] == "INTERNAL_ERROR"
        assert response.json()["details"]["request_id"] == "req-500"
