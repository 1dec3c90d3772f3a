"""
Admin pages and finance endpoints.
"""

from datetime import datetime, timedelta, timezone

import pytest

from detailing_backend.app.core.exceptions import UpstreamServiceError
from detailing_backend.tests.factories import (
    auth_cookies,
    auth_headers,
    create_booking,
    create_detailer,
    create_profile,
)


@pytest.fixture
async def admin(db_session):
    return await create_profile(db_session, role="admin", full_name="Ada Admin")


class TestUserManagement:

    @pytest.mark.asyncio
    async def test_users_filtered_by_role_newest_first(self, client, db_session, admin):
        now = datetime.now(timezone.utc)
        older = await create_profile(db_session, role="detailer", created_at=now - timedelta(days=2))
        newer = await create_profile(db_session, role="detailer", created_at=now - timedelta(days=1))
        await create_profile(db_session, role="user")

        response = await client.get("/admin/users?role=detailer", cookies=auth_cookies(admin.id))

        assert response.status_code == 200
        body = response.json()
        assert body["role_filter"] == "detailer"
        assert body["total"] == 2
        assert [u["id"] for u in body["users"]] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_users_unfiltered(self, client, db_session, admin):
        await create_profile(db_session, role="user")

        response = await client.get("/admin/users", cookies=auth_cookies(admin.id))
        assert response.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_role_change_redirects_back_to_list(self, client, db_session, fake_rpc, admin):
        customer = await create_profile(db_session, role="user")

        response = await client.post(
            f"/admin/users/{customer.id}/role",
            data={"role": "detailer"},
            cookies=auth_cookies(admin.id),
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/admin/users"
        assert fake_rpc.called("update_user_role") == [{"p_user_id": customer.id, "p_new_role": "detailer"}]

    @pytest.mark.asyncio
    async def test_role_change_rejects_unknown_role(self, client, db_session, fake_rpc, admin):
        response = await client.post(
            f"/admin/users/{admin.id}/role",
            data={"role": "superuser"},
            cookies=auth_cookies(admin.id),
        )
        assert response.status_code == 400
        assert fake_rpc.called("update_user_role") == []

    @pytest.mark.asyncio
    async def test_role_change_failure(self, client, db_session, fake_rpc, admin):
        fake_rpc.fails("update_user_role", UpstreamServiceError("permission denied for function"))

        response = await client.post(
            f"/admin/users/{admin.id}/role",
            data={"role": "user"},
            cookies=auth_cookies(admin.id),
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


class TestFinance:

    @pytest.mark.asyncio
    async def test_payouts(self, client, fake_rpc, admin):
        fake_rpc.returns(
            "get_all_payouts",
            [
                {"id": "po-1", "detailer_id": "det-1", "amount": "412.50", "status": "succeeded"},
                {"id": "po-2", "detailer_id": "det-2", "amount": "80.00", "stripe_payout_id": "po_legacy"},
            ],
        )

        response = await client.get("/api/admin/payouts?limit=20&offset=40", headers=auth_headers(admin.id))

        assert response.status_code == 200
        body = response.json()
        assert [p["id"] for p in body["data"]] == ["po-1", "po-2"]
        assert (body["limit"], body["offset"]) == (20, 40)
        assert body["total_amount_cents"] == 49250
        assert fake_rpc.called("get_all_payouts") == [{"p_limit": 20, "p_offset": 40}]

    @pytest.mark.asyncio
    async def test_malformed_payout_rows(self, client, fake_rpc, admin):
        fake_rpc.returns("get_all_payouts", [{"amount": "10.00"}])

        response = await client.get("/api/admin/payouts", headers=auth_headers(admin.id))
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    @pytest.mark.asyncio
    async def test_unknown_transfer_status_is_rejected(self, client, fake_rpc, admin):
        fake_rpc.returns("get_all_payouts", [{"id": "po-1", "amount": "10.00", "status": "teleported"}])

        response = await client.get("/api/admin/payouts", headers=auth_headers(admin.id))
        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_pending_refunds(self, client, fake_rpc, admin):
        fake_rpc.returns("get_pending_refunds", [{"id": "rf-1", "booking_id": "b-1", "amount": "25.00"}])

        response = await client.get("/api/admin/refunds", headers=auth_headers(admin.id))
        assert response.json()["data"][0]["booking_id"] == "b-1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action, message", [
        ("approve", "Refund request approved"),
        ("reject", "Refund request rejected"),
    ])
    async def test_process_refund(self, client, fake_rpc, admin, action, message):
        response = await client.post(
            "/api/admin/refunds/rf-1",
            json={"action": action, "admin_notes": "checked photos"},
            headers=auth_headers(admin.id),
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": message}
        assert fake_rpc.called("process_refund_request") == [
            {"p_refund_request_id": "rf-1", "p_action": action, "p_admin_notes": "checked photos"}
        ]

    @pytest.mark.asyncio
    async def test_finance_is_admin_only(self, client, db_session):
        detailer = await create_profile(db_session, role="detailer")
        response = await client.get("/api/admin/refunds", headers=auth_headers(detailer.id))
        assert response.status_code == 403


class TestPayoutRecord:

    def test_paid_out(self):
        from detailing_backend.app.schemas.admin import PayoutRecord

        assert PayoutRecord(id="1", status="succeeded").is_paid_out
        assert not PayoutRecord(id="2", status="failed", stripe_payout_id="po_x").is_paid_out
        assert PayoutRecord(id="3", stripe_payout_id="po_legacy").is_paid_out
        assert not PayoutRecord(id="4").is_paid_out


class TestAdminDashboard:

    @pytest.mark.asyncio
    async def test_fees_on_bookings_paid_today(self, client, db_session, fake_rpc, admin):
        per_booking = await create_detailer(
            db_session, await create_profile(db_session), pricing_model="percentage"
        )
        subscriber = await create_detailer(
            db_session, await create_profile(db_session), pricing_model="subscription"
        )
        today = datetime.now(timezone.utc).date()
        await create_booking(db_session, today, detailer_id=per_booking.id)
        await create_booking(db_session, today, detailer_id=subscriber.id)
        # Not counted: unpaid, or created before today
        await create_booking(db_session, today, detailer_id=per_booking.id, payment_status="unpaid")
        await create_booking(
            db_session,
            today,
            detailer_id=per_booking.id,
            created_at=datetime.now(timezone.utc) - timedelta(days=2),
        )
        fake_rpc.returns("get_platform_fee_percentage", [{"get_platform_fee_percentage": 15}])

        response = await client.get("/admin/dashboard", cookies=auth_cookies(admin.id))

        assert response.status_code == 200
        # 15% standard on one booking, 3% subscription default on the other
        assert response.json()["fees_today"] == {
            "gross_revenue": "200.00",
            "platform_fees": "18.00",
            "detailer_payouts": "182.00",
        }

    @pytest.mark.asyncio
    async def test_no_paid_bookings_today(self, client, admin):
        response = await client.get("/admin/dashboard", cookies=auth_cookies(admin.id))
        assert response.json()["fees_today"]["platform_fees"] == "0"
