"""
Pricing model switching and the platform function client.
"""

import httpx
import pytest
from sqlalchemy import select

from detailing_backend.app.core.config import settings
from detailing_backend.app.core.exceptions import ConfigurationError, UpstreamServiceError
from detailing_backend.app.models.detailer import Detailer
from detailing_backend.app.services import platform_functions
from detailing_backend.tests.factories import auth_headers, create_detailer, create_profile

SWITCH_URL = "/api/detailer/switch-pricing-model"


async def _pricing_state(db, detailer_id):
    result = await db.execute(
        select(Detailer.pricing_model, Detailer.stripe_subscription_id).where(Detailer.id == detailer_id)
    )
    return tuple(result.one())


@pytest.fixture
async def detailer(db_session):
    profile = await create_profile(db_session, role="detailer")
    return await create_detailer(db_session, profile, pricing_model="percentage")


@pytest.fixture
def invoke(mocker):
    return mocker.patch.object(platform_functions, "invoke_function", return_value={"url": "https://checkout"})


class TestSwitchPricingModel:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"pricing_model": "freemium"}])
    async def test_invalid_model(self, client, detailer, body):
        response = await client.post(SWITCH_URL, json=body, headers=auth_headers(detailer.profile_id))
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid pricing model"}

    @pytest.mark.asyncio
    async def test_profile_without_detailer_record(self, client, db_session):
        profile = await create_profile(db_session, role="detailer")
        response = await client.post(
            SWITCH_URL, json={"pricing_model": "subscription"}, headers=auth_headers(profile.id)
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Detailer not found"}

    @pytest.mark.asyncio
    async def test_same_model_is_a_no_op(self, client, detailer, invoke):
        response = await client.post(
            SWITCH_URL, json={"pricing_model": "percentage"}, headers=auth_headers(detailer.profile_id)
        )
        assert response.json() == {"success": True, "message": "Already on this pricing model"}
        invoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_switch_to_subscription(self, client, db_session, detailer, invoke):
        response = await client.post(
            SWITCH_URL,
            json={"pricing_model": "subscription"},
            headers={**auth_headers(detailer.profile_id), "X-Request-Id": "req-42"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Pricing model updated. Please complete subscription setup in Stripe."
        invoke.assert_awaited_once_with(
            "create-detailer-subscription", {"detailer_id": detailer.id}, request_id="req-42"
        )
        assert (await _pricing_state(db_session, detailer.id))[0] == "subscription"

    @pytest.mark.asyncio
    async def test_failed_subscription_reverts(self, client, db_session, detailer, invoke):
        invoke.side_effect = UpstreamServiceError("Function create-detailer-subscription failed")

        response = await client.post(
            SWITCH_URL, json={"pricing_model": "subscription"}, headers=auth_headers(detailer.profile_id)
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert (await _pricing_state(db_session, detailer.id))[0] == "percentage"

    @pytest.mark.asyncio
    async def test_unconfigured_platform_reverts(self, client, db_session, detailer, invoke):
        invoke.side_effect = ConfigurationError("platform URL")

        response = await client.post(
            SWITCH_URL, json={"pricing_model": "subscription"}, headers=auth_headers(detailer.profile_id)
        )

        assert response.json() == {"error": "Server configuration error: Missing platform URL"}
        assert (await _pricing_state(db_session, detailer.id))[0] == "percentage"

    @pytest.mark.asyncio
    async def test_switch_to_pay_per_booking_clears_subscription(self, client, db_session, invoke):
        profile = await create_profile(db_session, role="detailer")
        detailer = await create_detailer(db_session, profile, pricing_model="subscription")
        detailer.stripe_subscription_id = "sub_123"
        await db_session.commit()

        response = await client.post(
            SWITCH_URL, json={"pricing_model": "percentage"}, headers=auth_headers(profile.id)
        )

        assert response.json()["message"] == "Pricing model updated to Pay Per Booking"
        assert await _pricing_state(db_session, detailer.id) == ("percentage", None)
        invoke.assert_not_called()


class TestPlatformFunctions:

    @pytest.fixture
    def configured(self, monkeypatch):
        monkeypatch.setattr(settings, "platform_url", "https://platform.example.com/")
        monkeypatch.setattr(settings, "platform_service_role_key", "service-key")

    @pytest.fixture
    def transport(self, monkeypatch):
        """Route the client through a mock transport; returns the captured requests."""
        captured = []
        responses = {}
        real_client = httpx.AsyncClient

        def handler(request):
            captured.append(request)
            return responses.get("next", httpx.Response(200, json={"ok": True}))

        def client_factory(**kwargs):
            return real_client(transport=httpx.MockTransport(handler), **kwargs)

        monkeypatch.setattr(platform_functions.httpx, "AsyncClient", client_factory)
        return captured, responses

    @pytest.mark.asyncio
    async def test_invoke(self, configured, transport):
        captured, _ = transport

        body = await platform_functions.invoke_function("create-detailer-subscription", {"detailer_id": "d-1"}, "req-1")

        assert body == {"ok": True}
        request = captured[0]
        assert str(request.url) == "https://platform.example.com/functions/v1/create-detailer-subscription"
        assert request.headers["Authorization"] == "Bearer service-key"
        assert request.headers["X-Request-Id"] == "req-1"

    @pytest.mark.asyncio
    async def test_error_status(self, configured, transport):
        _, responses = transport
        responses["next"] = httpx.Response(402, text="card declined")

        with pytest.raises(UpstreamServiceError) as exc_info:
            await platform_functions.invoke_function("create-detailer-subscription", {})
        assert exc_info.value.details["status"] == 402

    @pytest.mark.asyncio
    async def test_missing_configuration(self, monkeypatch):
        monkeypatch.setattr(settings, "platform_url", None)
        with pytest.raises(ConfigurationError):
            await platform_functions.invoke_function("create-detailer-subscription", {})
