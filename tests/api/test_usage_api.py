"""Chemical usage API integration tests."""

from unittest.mock import patch

from httpx import AsyncClient


class TestRecordUsage:
    """Usage recording endpoint tests."""

    async def test_record_usage(self, client: AsyncClient, users, add_chemical, lab_data):
        chem = add_chemical(quantity=100)
        response = await client.post(f"/api/v1/chemicals/{chem}/usage", json={
            "user_id": users["technician"],
            "quantity_used": 30,
            "purpose": "Buffer prep",
            "experiment_reference": "EXP-7"
        })
        assert response.status_code == 201
        data = response.json()
        assert data["chemical_id"] == chem
        assert data["quantity_used"] == 30
        assert data["remaining_quantity"] == 70
        assert data["experiment_reference"] == "EXP-7"
        assert lab_data.get_chemical(chem).value.quantity == 70

    async def test_insufficient_quantity(self, client: AsyncClient, users, add_chemical):
        chem = add_chemical(quantity=5)
        response = await client.post(f"/api/v1/chemicals/{chem}/usage", json={
            "user_id": users["borrower"], "quantity_used": 6
        })
        assert response.status_code == 409
        assert "Insufficient quantity" in response.json()["detail"]

    async def test_unknown_chemical(self, client: AsyncClient, users):
        response = await client.post("/api/v1/chemicals/999/usage", json={
            "user_id": users["borrower"], "quantity_used": 1
        })
        assert response.status_code == 404

    async def test_unknown_user(self, client: AsyncClient, add_chemical):
        chem = add_chemical()
        response = await client.post(f"/api/v1/chemicals/{chem}/usage", json={
            "user_id": 999, "quantity_used": 1
        })
        assert response.status_code == 404
        assert "User not found" in response.json()["detail"]

    async def test_user_lookup_failure(self, client: AsyncClient, add_chemical, lab_data, users):
        chem = add_chemical()
        with patch.object(lab_data.users, "get", side_effect=RuntimeError("down")):
            response = await client.post(f"/api/v1/chemicals/{chem}/usage", json={
                "user_id": users["borrower"], "quantity_used": 1
            })
        assert response.status_code == 503

    async def test_quantity_too_large(self, client: AsyncClient, users, add_chemical):
        chem = add_chemical()
        response = await client.post(f"/api/v1/chemicals/{chem}/usage", json={
            "user_id": users["borrower"], "quantity_used": 10_000_000
        })
        assert response.status_code == 400

    async def test_non_positive_quantity_rejected(self, client: AsyncClient, users, add_chemical):
        chem = add_chemical()
        response = await client.post(f"/api/v1/chemicals/{chem}/usage", json={
            "user_id": users["borrower"], "quantity_used": 0
        })
        assert response.status_code == 422


class TestListUsage:
    """Usage history endpoint tests."""

    async def test_history_newest_first(self, client: AsyncClient, users, add_chemical):
        chem = add_chemical(quantity=100)
        for amount in (10, 20):
            await client.post(f"/api/v1/chemicals/{chem}/usage", json={
                "user_id": users["technician"], "quantity_used": amount
            })

        response = await client.get(f"/api/v1/chemicals/{chem}/usage")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [log["remaining_quantity"] for log in data["logs"]] == [70, 90]

    async def test_unknown_chemical(self, client: AsyncClient):
        response = await client.get("/api/v1/chemicals/999/usage")
        assert response.status_code == 404
