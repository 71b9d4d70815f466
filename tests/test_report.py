"""
Test report rendering and delivery.
"""

from unittest.mock import AsyncMock

import pytest

from payout_crunch.services.notifications import LoggingNotifier, build_notifier
from payout_crunch.services.notifications.telegram_notifier import TelegramNotifier, split_message
from payout_crunch.services.payouts.types import (
    ClaimUnit,
    NetworkInfo,
    Payout,
    Points,
    PoolCommission,
    PoolsSummary,
    RunReport,
    RunSummary,
    SignerDetails,
    ValidatorRecord,
)
from payout_crunch.services.report import build_report, format_amount


NETWORK = NetworkInfo(
    name="Westend",
    active_era=10,
    token_symbol="WND",
    token_decimals=12,
    subdomain="assethub-westend",
)


def _report_data(**kwargs):
    validator = ValidatorRecord(
        stash="stash-a",
        controller="stash-a-ctrl",
        name="ACME/node-1",
        is_active=True,
        claimed=[ClaimUnit(9, 0)],
        unclaimed=[ClaimUnit(8, 0)],
        payouts=[Payout(
            block_number=77,
            extrinsic="0xext",
            era_index=9,
            validator_amount=3 * 10 ** 12,
            delegators_amount=1 * 10 ** 12,
            delegator_count=2,
            points=Points(validator=200, era_avg=150.0),
        )],
    )
    params = dict(
        network=NETWORK,
        signer=SignerDetails(account="5Signer", name="signer <ops>"),
        validators=[validator, ValidatorRecord(stash="stash-b", warnings=["No controller bonded!"])],
        summary=RunSummary(calls=2, calls_succeeded=1, calls_failed=1, total_validators=2),
    )
    params.update(kwargs)
    return RunReport(**params)


def test_format_amount():
    assert format_amount(15 * 10 ** 11, 12, "WND") == "1.5000 WND"


def test_report_lines():
    report = build_report(_report_data())
    text = report.formatted_message()

    assert "💙 <b>Westend</b> is playing era <i>10</i> 🎶" in text
    assert "signer &lt;ops&gt;" in text
    assert "🦸 Nominators (2) -> 💸 1.0000 WND (25.00%)" in text
    assert "finalized at block #77" in text
    assert "https://assethub-westend.subscan.io/extrinsic/0xext" in text
    assert "⚡ There are still 1 unclaimed units left to <code>crunch</code>" in text
    assert "😋 Crunched 1/2 (50.00%)" in text
    assert "⚠️ No controller bonded! ⚠️" in text
    assert "📊 Calls 1/2 succeeded (50.00%), 1 failed, 2 validators" in text


def test_plain_message_strips_markup():
    message = build_report(_report_data()).message()

    assert "<b>" not in message
    assert "signer <ops>" in message
    assert "Westend is playing era 10" in message


def test_next_run_line_depends_on_mode():
    era_driven = build_report(_report_data()).formatted_message()
    interval = build_report(_report_data(), run_interval=21600).formatted_message()

    assert "Until next era <i>11</i>" in era_driven
    assert "will be in 6 hours" in interval


def test_pool_section():
    pools = PoolsSummary(total_members=3, calls=4, commissions=[PoolCommission(7, 2 * 10 ** 12)])

    text = build_report(_report_data(pools=pools)).formatted_message()

    assert "🏊 Pool members compounded: 3" in text
    assert "🏦 Pool 7 commission claimed -> 💸 2.0000 WND" in text


def test_split_message_respects_limit_and_lines():
    text = "\n".join(f"line {n}" for n in range(100))

    chunks = split_message(text, limit=50)

    assert all(len(c) <= 50 for c in chunks)
    assert "".join(chunks) == text
    assert all(c.endswith("\n") for c in chunks[:-1])


def test_split_message_cuts_overlong_line():
    chunks = split_message("x" * 120, limit=50)

    assert [len(c) for c in chunks] == [50, 50, 20]


def test_short_message_is_one_chunk():
    assert split_message("hello") == ["hello"]


@pytest.mark.asyncio
async def test_telegram_notifier_sends_formatted_chunks():
    bot = AsyncMock()
    notifier = TelegramNotifier("123:abc", "-100", bot=bot)

    await notifier.send("plain", "<b>formatted</b>")

    bot.send_message.assert_awaited_once_with(chat_id="-100", text="<b>formatted</b>")


def test_build_notifier_falls_back_to_logging(settings):
    assert isinstance(build_notifier(settings), LoggingNotifier)


def test_summary_line_with_no_calls():
    text = build_report(_report_data(summary=RunSummary(total_validators=2))).formatted_message()

    assert "📊 Calls 0/0 succeeded (0.00%), 0 failed, 2 validators" in text
