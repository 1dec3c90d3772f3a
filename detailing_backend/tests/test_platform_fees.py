"""
Commission resolution and fee/payout splitting.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from detailing_backend.app.core.exceptions import UpstreamServiceError
from detailing_backend.app.domain.billing.platform_fees import (
    PlatformFeeResolver,
    calculate_detailer_payout,
    calculate_fee_split,
    calculate_platform_fee,
    split_amount,
    summarize_booking_fees,
    to_cents,
)
from detailing_backend.app.models.platform_setting import PlatformSetting
from detailing_backend.tests.factories import create_detailer, create_profile


async def _subscription_detailer(db):
    profile = await create_profile(db)
    return await create_detailer(db, profile, pricing_model="subscription")


def test_split_standard_commission():
    split = split_amount(Decimal("100.00"), 15)
    assert split.platform_fee == Decimal("15.00")
    assert split.detailer_payout == Decimal("85.00")


def test_split_rounds_half_to_even_and_sums_to_total():
    # 0.125 rounds down to the even cent, 0.375 rounds up
    assert split_amount("2.50", 5).platform_fee == Decimal("0.12")
    assert split_amount("7.50", 5).platform_fee == Decimal("0.38")

    split = split_amount("19.99", "12.5")
    assert split.platform_fee + split.detailer_payout == Decimal("19.99")


def test_split_accepts_floats_without_binary_noise():
    split = split_amount(0.1, 50)
    assert split.total_amount == Decimal("0.1")
    assert split.platform_fee == Decimal("0.05")


def test_to_cents():
    assert to_cents(Decimal("12.345")) == 1234
    assert to_cents("0.015") == 2


@pytest.mark.asyncio
async def test_standard_percentage_from_platform(fake_rpc, db_session):
    fake_rpc.returns("get_platform_fee_percentage", [{"get_platform_fee_percentage": 12}])
    assert await PlatformFeeResolver.get_platform_fee_percentage(db_session) == Decimal("12")


@pytest.mark.asyncio
async def test_standard_percentage_falls_back_on_failure(fake_rpc, db_session):
    fake_rpc.fails("get_platform_fee_percentage", UpstreamServiceError("down"))
    assert await PlatformFeeResolver.get_platform_fee_percentage(db_session) == Decimal("15")


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", [None, 0, -5, "abc"])
async def test_standard_percentage_falls_back_on_bad_value(fake_rpc, db_session, raw):
    fake_rpc.returns("get_platform_fee_percentage", [{"get_platform_fee_percentage": raw}])
    assert await PlatformFeeResolver.get_platform_fee_percentage(db_session) == Decimal("15")


@pytest.mark.asyncio
async def test_subscription_detailer_pays_configured_percentage(fake_rpc, db_session):
    detailer = await _subscription_detailer(db_session)
    db_session.add(PlatformSetting(key="subscription_platform_fee_percentage", value="4"))
    await db_session.commit()

    split = await calculate_fee_split(db_session, Decimal("100.00"), detailer_id=detailer.id)
    assert split.fee_percentage == Decimal("4")
    assert split.platform_fee == Decimal("4.00")
    assert fake_rpc.called("get_platform_fee_percentage") == []


@pytest.mark.asyncio
async def test_subscription_percentage_defaults_to_three(fake_rpc, db_session):
    detailer = await _subscription_detailer(db_session)

    assert await calculate_platform_fee(db_session, 100, detailer_id=detailer.id) == Decimal("3.00")
    assert await calculate_detailer_payout(db_session, 100, detailer_id=detailer.id) == Decimal("97.00")


@pytest.mark.asyncio
async def test_percentage_detailer_pays_standard_fee(fake_rpc, db_session):
    profile = await create_profile(db_session)
    detailer = await create_detailer(db_session, profile, pricing_model="percentage")
    fake_rpc.returns("get_platform_fee_percentage", [{"get_platform_fee_percentage": "15"}])

    assert await calculate_platform_fee(db_session, "80.00", detailer_id=detailer.id) == Decimal("12.00")


@pytest.mark.asyncio
async def test_unknown_detailer_pays_standard_fee(fake_rpc, db_session):
    fake_rpc.returns("get_platform_fee_percentage", [{"get_platform_fee_percentage": 15}])
    assert await calculate_platform_fee(db_session, 100, detailer_id="missing") == Decimal("15.00")


@pytest.mark.asyncio
async def test_explicit_percentage_wins(fake_rpc, db_session):
    detailer = await _subscription_detailer(db_session)

    split = await calculate_fee_split(db_session, 200, detailer_id=detailer.id, fee_percentage=10)
    assert split.platform_fee == Decimal("20.00")
    assert fake_rpc.calls == []


@pytest.mark.asyncio
async def test_summary_uses_each_detailers_percentage(fake_rpc, db_session):
    subscriber = await _subscription_detailer(db_session)
    fake_rpc.returns("get_platform_fee_percentage", [{"get_platform_fee_percentage": 15}])
    bookings = [
        SimpleNamespace(id="b-1", detailer_id=subscriber.id, total_amount=Decimal("100.00")),
        SimpleNamespace(id="b-2", detailer_id=subscriber.id, total_amount=Decimal("50.00")),
        # No total: billed at the service price, standard percentage
        SimpleNamespace(id="b-3", detailer_id=None, total_amount=None, service_price=Decimal("20.00")),
    ]

    summary = await summarize_booking_fees(db_session, bookings)

    assert summary.by_booking["b-1"].platform_fee == Decimal("3.00")
    assert summary.by_booking["b-2"].platform_fee == Decimal("1.50")
    assert summary.by_booking["b-3"].platform_fee == Decimal("3.00")
    assert summary.gross_revenue == Decimal("170.00")
    assert summary.platform_fees + summary.detailer_payouts == summary.gross_revenue
    assert len(fake_rpc.called("get_platform_fee_percentage")) == 1
