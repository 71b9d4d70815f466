"""
Run report rendering.

A report is a list of HTML lines; the plain text version strips the tags.
Telegram HTML mode has no line break tag, so both versions join on newlines.
"""

import html
import re
from typing import List, Optional

from payout_crunch import __version__
from payout_crunch.services.payouts.types import NetworkInfo, Payout, RunReport


_TAG_RE = re.compile(r"<[^>]+>")


def format_amount(value: int, decimals: int, symbol: str) -> str:
    return f"{value / 10 ** decimals:.4f} {symbol}"


def _percentage(part: int, total: int) -> float:
    if total == 0:
        return 0.0
    return part / total * 100


class Report:
    """Accumulates report lines."""

    def __init__(self):
        self.body: List[str] = []

    def add(self, text: str) -> None:
        self.body.append(text)

    def add_break(self) -> None:
        self.body.append("")

    def formatted_message(self) -> str:
        return "\n".join(self.body)

    def message(self) -> str:
        return html.unescape(_TAG_RE.sub("", self.formatted_message()))


def _payout_lines(report: Report, network: NetworkInfo, name: str, payout: Payout) -> None:
    total = payout.validator_amount + payout.delegators_amount
    report.add(
        f"🎲 Points {payout.points.validator} ({payout.points.era_avg:.0f}) -> 💸 "
        f"{format_amount(total, network.token_decimals, network.token_symbol)}"
    )
    report.add(
        f"🧑‍🚀 {html.escape(name)} -> 💸 <b>"
        f"{format_amount(payout.validator_amount, network.token_decimals, network.token_symbol)}"
        f"</b> ({_percentage(payout.validator_amount, total):.2f}%)"
    )
    report.add(
        f"🦸 Nominators ({payout.delegator_count}) -> 💸 "
        f"{format_amount(payout.delegators_amount, network.token_decimals, network.token_symbol)}"
        f" ({_percentage(payout.delegators_amount, total):.2f}%)"
    )
    extrinsic = payout.extrinsic or ""
    report.add(
        f"💯 Payout for era <del>{payout.era_index}</del> finalized at block #{payout.block_number} "
        f"(<a href=\"https://{network.subdomain}.subscan.io/extrinsic/{extrinsic}\">{extrinsic}</a>) ✨"
    )


def build_report(data: RunReport, run_interval: Optional[int] = None) -> Report:
    """
    Render a run report.

    Args:
        data: Outcome of the run
        run_interval: Seconds until the next run, None in era-driven mode
    """
    network = data.network
    report = Report()

    report.add(f"💙 <b>{html.escape(network.name)}</b> is playing era <i>{network.active_era}</i> 🎶")
    report.add_break()
    report.add(f"✍️ Signer &middot; <code>{html.escape(data.signer.name or data.signer.account)}</code>")
    for warning in data.signer.warnings:
        report.add(f"⚠️ {html.escape(warning)} ⚠️")

    for validator in data.validators:
        report.add_break()
        if validator.warnings:
            report.add(f"<b>{html.escape(validator.name or validator.stash)}</b>")
            for warning in validator.warnings:
                report.add(f"⚠️ {html.escape(warning)} ⚠️")
            if not validator.payouts:
                continue

        status = "🟢" if validator.is_active else "🔴"
        report.add(
            f"{status} <b><a href=\"https://{network.subdomain}.subscan.io/validator/"
            f"{validator.stash}\">{html.escape(validator.name)}</a></b>"
        )
        report.add(f"💰 Stash &middot; <code>{validator.stash}</code>")

        if not validator.payouts:
            if validator.is_active:
                report.add("🥣 Looking forward for next <code>crunch</code>")
            else:
                report.add("🥣 Nothing to <code>crunch</code>")
        else:
            for payout in validator.payouts:
                _payout_lines(report, network, validator.name, payout)

            if validator.unclaimed:
                report.add(
                    f"⚡ There are still {len(validator.unclaimed)} unclaimed units "
                    f"left to <code>crunch</code>"
                )
            else:
                report.add(f"✌️ {html.escape(validator.name)} just run out of rewards 💫 💙")

        known = len(validator.claimed) + len(validator.unclaimed)
        if validator.claimed:
            report.add(
                f"😋 Crunched {len(validator.claimed)}/{known} "
                f"({_percentage(len(validator.claimed), known):.2f}%)"
            )

    if data.pools is not None and data.pools.calls:
        report.add_break()
        report.add(f"🏊 Pool members compounded: {data.pools.total_members}")
        for commission in data.pools.commissions:
            report.add(
                f"🏦 Pool {commission.pool_id} commission claimed -> 💸 "
                f"{format_amount(commission.commission, network.token_decimals, network.token_symbol)}"
            )

    summary = data.summary
    report.add_break()
    report.add(
        f"📊 Calls {summary.calls_succeeded}/{summary.calls} succeeded "
        f"({summary.success_rate * 100:.2f}%), "
        f"{summary.calls_failed} failed, {summary.total_validators} validators"
    )
    if run_interval is None:
        report.add(f"💨 Until next era <i>{network.active_era + 1}</i> -> Stay tuned 👀")
    else:
        report.add(f"💨 The next <code>crunch</code> time will be in {run_interval // 3600} hours ⏱️")
    report.add(f"🤖 <code>payout-crunch v{__version__}</code> 💤")

    return report
