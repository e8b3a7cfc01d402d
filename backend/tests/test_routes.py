"""
GrocerHub Backend — API Endpoint Tests
========================================

What:  HTTP-level tests through create_app() with the test database, static
       tokens and a static feed registry.

What we test:
    ✅ Health report with feed circuit states
    ✅ Authentication (401) and role guards (403) in the error envelope
    ✅ Store catalog sync: camelCase summary, unconfigured store, sync-all
    ✅ Customer product listing and order placement
    ✅ Driver and admin status updates, ownership checks
    ✅ Request validation errors use the standard envelope
"""

from decimal import Decimal

import pytest


async def _place_order(client, auth_headers, marketplace, **overrides):
    body = {
        "items": [
            {"store_offering_id": str(marketplace.milk_offering_id), "quantity": 2},
            {"store_offering_id": str(marketplace.bread_offering_id), "quantity": 1},
        ],
        "delivery_address": {
            "street": "123 Pretorius Street",
            "city": "Pretoria",
            "postal_code": "0002",
            "coordinates": [28.2167, -25.7461],
        },
        "payment_method": "card",
    }
    body.update(overrides)
    return await client.post("/api/customers/orders", json=body, headers=auth_headers("customer"))


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_reports_database_and_feeds(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["feeds"] == {"static": "closed"}
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client):
        response = await client.get("/api/admin/stores")

        assert response.status_code == 401
        data = response.json()
        assert data["error"] == "not_authenticated"
        assert data["message"] == "Not authorized, no token"
        assert data["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_unknown_token_is_401(self, client):
        response = await client.get(
            "/api/admin/stores", headers={"Authorization": "Bearer not-a-real-token"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, token failed"

    @pytest.mark.asyncio
    async def test_wrong_role_is_403(self, client, auth_headers):
        response = await client.get("/api/admin/stores", headers=auth_headers("customer"))

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_driver_cannot_place_orders(self, client, auth_headers):
        response = await client.post(
            "/api/customers/orders", json={"items": []}, headers=auth_headers("driver")
        )

        assert response.status_code == 403


class TestStoreSync:
    @pytest.mark.asyncio
    async def test_sync_store_returns_camel_case_summary(self, client, auth_headers, marketplace):
        response = await client.post(
            f"/api/admin/stores/{marketplace.store_id}/sync-products",
            headers=auth_headers("admin"),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Products synchronized from Test Market Hatfield"
        assert data["summary"] == {
            "newProductsAdded": 1,
            "updatedOfferings": 1,
            "unchangedOfferings": 1,
        }

    @pytest.mark.asyncio
    async def test_second_sync_reports_everything_unchanged(self, client, auth_headers, marketplace):
        url = f"/api/admin/stores/{marketplace.store_id}/sync-products"
        await client.post(url, headers=auth_headers("admin"))

        response = await client.post(url, headers=auth_headers("admin"))

        assert response.json()["summary"] == {
            "newProductsAdded": 0,
            "updatedOfferings": 0,
            "unchangedOfferings": 2,
        }

    @pytest.mark.asyncio
    async def test_unconfigured_store_is_400(self, client, auth_headers, marketplace):
        response = await client.post(
            f"/api/admin/stores/{marketplace.unsynced_store_id}/sync-products",
            headers=auth_headers("admin"),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "configuration_error"
        assert data["message"] == "Store is not configured with API details for synchronization."

    @pytest.mark.asyncio
    async def test_sync_all_reports_per_store(self, client, auth_headers, marketplace):
        response = await client.post("/api/admin/stores/sync-products", headers=auth_headers("admin"))

        assert response.status_code == 200
        results = response.json()["results"]
        assert len(results) == 1
        assert results[0]["store_name"] == "Test Market Hatfield"
        assert results[0]["succeeded"] is True
        assert results[0]["summary"]["newProductsAdded"] == 1

    @pytest.mark.asyncio
    async def test_store_response_hides_secrets(self, client, auth_headers):
        response = await client.post(
            "/api/admin/stores",
            json={
                "name": "Spar Lynnwood",
                "street": "Lynnwood Rd",
                "city": "Pretoria",
                "postal_code": "0081",
                "api_base_url": "https://spar.test",
                "api_key": "SPAR_KEY",
                "feed_provider": "generic",
            },
            headers=auth_headers("admin"),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["has_api_key"] is True
        assert data["has_api_credentials"] is False
        assert "api_key" not in data


class TestCustomerRoutes:
    @pytest.mark.asyncio
    async def test_product_listing_is_public(self, client, marketplace):
        response = await client.get("/api/customers/products")

        assert response.status_code == 200
        by_name = {p["name"]: p for p in response.json()}
        assert set(by_name) == {"Full Cream Milk", "White Bread (Large)", "White Sugar"}
        milk_offers = by_name["Full Cream Milk"]["offerings"]
        assert milk_offers[0]["store_name"] == "Test Market Hatfield"
        assert Decimal(milk_offers[0]["price"]) == Decimal("22.99")

    @pytest.mark.asyncio
    async def test_available_only_hides_unavailable(self, client, marketplace):
        response = await client.get("/api/customers/products", params={"available_only": "true"})

        names = {p["name"] for p in response.json()}
        assert "White Sugar" not in names

    @pytest.mark.asyncio
    async def test_place_order(self, client, auth_headers, marketplace):
        response = await _place_order(client, auth_headers, marketplace)

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["total_amount"]) == Decimal("88.98")
        assert data["status"] == "pending"
        assert data["payment_status"] == "paid"
        assert len(data["items"]) == 2

        listing = await client.get("/api/customers/orders", headers=auth_headers("customer"))
        assert listing.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_empty_cart_is_400(self, client, auth_headers, marketplace):
        response = await _place_order(client, auth_headers, marketplace, items=[])

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert data["message"] == "No order items"

    @pytest.mark.asyncio
    async def test_unavailable_item_is_400(self, client, auth_headers, marketplace):
        response = await _place_order(
            client,
            auth_headers,
            marketplace,
            items=[{"store_offering_id": str(marketplace.unavailable_offering_id), "quantity": 1}],
        )

        assert response.status_code == 400
        assert "not available" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_malformed_body_uses_error_envelope(self, client, auth_headers, marketplace):
        response = await _place_order(
            client,
            auth_headers,
            marketplace,
            items=[{"store_offering_id": "not-a-uuid", "quantity": 0}],
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert len(data["details"]["errors"]) == 2

    @pytest.mark.asyncio
    async def test_other_customers_order_is_403(self, client, auth_headers, marketplace):
        order_id = (await _place_order(client, auth_headers, marketplace)).json()["id"]

        response = await client.get(
            f"/api/customers/orders/{order_id}", headers=auth_headers("other_customer")
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to view this order"


class TestFulfillmentRoutes:
    async def _assigned_order_id(self, client, auth_headers, marketplace) -> str:
        order_id = (await _place_order(client, auth_headers, marketplace)).json()["id"]
        response = await client.put(
            f"/api/admin/orders/{order_id}/status",
            json={"status": "assigned", "driverId": str(marketplace.driver_id)},
            headers=auth_headers("admin"),
        )
        assert response.status_code == 200
        assert response.json()["driver_phone"] == "+27600000001"
        return order_id

    @pytest.mark.asyncio
    async def test_driver_delivers_order(self, client, auth_headers, marketplace):
        order_id = await self._assigned_order_id(client, auth_headers, marketplace)

        for target in ("picked_up", "out_for_delivery", "delivered"):
            response = await client.put(
                f"/api/drivers/orders/{order_id}/status",
                json={"status": target},
                headers=auth_headers("driver"),
            )
            assert response.status_code == 200
            assert response.json()["status"] == target

        assert response.json()["delivered_at"] is not None
        mine = await client.get("/api/drivers/my-orders", headers=auth_headers("driver"))
        assert mine.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_invalid_transition_is_400(self, client, auth_headers, marketplace):
        order_id = await self._assigned_order_id(client, auth_headers, marketplace)

        response = await client.put(
            f"/api/drivers/orders/{order_id}/status",
            json={"status": "delivered"},
            headers=auth_headers("driver"),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "invalid_transition"
        assert data["details"] == {"from": "assigned", "to": "delivered"}

    @pytest.mark.asyncio
    async def test_other_driver_is_403(self, client, auth_headers, marketplace):
        order_id = await self._assigned_order_id(client, auth_headers, marketplace)

        response = await client.put(
            f"/api/drivers/orders/{order_id}/status",
            json={"status": "picked_up"},
            headers=auth_headers("other_driver"),
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to update this order"

    @pytest.mark.asyncio
    async def test_unknown_order_is_404(self, client, auth_headers, marketplace):
        response = await client.put(
            "/api/admin/orders/00000000-0000-0000-0000-000000000000/status",
            json={"status": "cancelled"},
            headers=auth_headers("admin"),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestDriverSelfService:
    @pytest.mark.asyncio
    async def test_availability_toggles_without_body_value(self, client, auth_headers, marketplace):
        response = await client.put(
            "/api/drivers/availability", json={}, headers=auth_headers("driver")
        )
        assert response.status_code == 200
        assert response.json()["is_available"] is False

        response = await client.put(
            "/api/drivers/availability", json={"is_available": False}, headers=auth_headers("driver")
        )
        assert response.json()["is_available"] is False

    @pytest.mark.asyncio
    async def test_location_update(self, client, auth_headers, marketplace):
        response = await client.put(
            "/api/drivers/location",
            json={"coordinates": [28.21, -25.75]},
            headers=auth_headers("driver"),
        )

        assert response.status_code == 200
        assert response.json()["current_location"] == [28.21, -25.75]

    @pytest.mark.asyncio
    async def test_out_of_range_location_is_400(self, client, auth_headers, marketplace):
        response = await client.put(
            "/api/drivers/location",
            json={"coordinates": [28.21, -125.75]},
            headers=auth_headers("driver"),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
