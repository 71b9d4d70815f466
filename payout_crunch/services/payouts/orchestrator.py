"""
One full payout run: collect, build, validate, execute and report.
"""

from typing import List, Optional, Tuple

import structlog

from payout_crunch.chains.adapter import ChainAdapter
from payout_crunch.chains.types import ChainConstants, TxParams
from payout_crunch.core.config import CrunchSettings
from payout_crunch.core.exceptions import NotificationError
from payout_crunch.services.identity import IdentityResolver
from payout_crunch.services.notifications.base import Notifier
from payout_crunch.services.pools import PoolCallCollector
from payout_crunch.services.report import build_report
from payout_crunch.services.stashes import StashSource
from .builder import BatchBuilder
from .executor import BatchExecutor
from .tracker import EraPayoutTracker, lookback_start
from .types import (
    AuxiliaryCall,
    NetworkInfo,
    PoolsSummary,
    RunContext,
    RunReport,
    RunSummary,
    SignerDetails,
    ValidatorRecord,
)
from .validator import BatchValidator


logger = structlog.get_logger(__name__)

NO_CONTROLLER_WARNING = "No controller bonded!"
LOW_FUNDS_WARNING = "Signer account is running low on funds"


class PayoutOrchestrator:
    """
    Runs the payout pipeline against freshly queried chain state.

    Nothing survives between runs: validator records, the run context and
    the summary are rebuilt every time `run` is called.
    """

    def __init__(
        self,
        adapter: ChainAdapter,
        settings: CrunchSettings,
        notifier: Notifier,
        identity: Optional[IdentityResolver] = None,
        stash_source: Optional[StashSource] = None
    ):
        self.adapter = adapter
        self.client = adapter.client
        self.settings = settings
        self.notifier = notifier
        self.identity = identity or IdentityResolver(adapter.client)
        self.stash_source = stash_source or StashSource(settings)
        self.tracker = EraPayoutTracker(adapter.client)
        self.logger = logger.bind(service="payout_orchestrator", chain=adapter.profile.name)

    async def run(self) -> RunReport:
        """Claim every pending reward of the configured stashes and report it."""
        self.logger.info("🚀 Payout run started")

        signer = await self.signer_details()
        constants = await self.adapter.constants()
        active_era = await self.client.current_period()
        start_era = lookback_start(
            active_era, self.settings.maximum_history_eras, constants.history_depth
        )

        validators = await self.collect_validators(start_era, active_era)

        context = self.run_context(signer, constants)
        auxiliary, pools = await self.collect_pool_calls()

        summary = RunSummary()
        plan = BatchBuilder(self.adapter, context.maximum_payouts).build(
            validators, summary, auxiliary
        )

        validator = BatchValidator(
            self.adapter,
            context.max_extrinsic_weight,
            context.existential_deposit,
            context.maximum_calls,
        )
        executor = BatchExecutor(
            self.adapter,
            validator,
            TxParams(tip=self.settings.tx_tip, mortal_period=self.settings.tx_mortal_period),
        )
        await executor.execute_all(plan, validators, summary, context, pools)
        summary.total_validators = len(validators)

        report = RunReport(
            network=self.network_info(active_era),
            signer=signer,
            validators=validators,
            summary=summary,
            pools=pools,
        )

        self.logger.info(
            "🏁 Payout run finished",
            active_era=active_era,
            calls=summary.calls,
            succeeded=summary.calls_succeeded,
            failed=summary.calls_failed,
            batches=len(summary.batches)
        )

        await self.send_report(report)
        return report

    async def inspect(self) -> List[ValidatorRecord]:
        """Log claimed and unclaimed units of every stash without submitting anything."""
        constants = await self.adapter.constants()
        active_era = await self.client.current_period()
        start_era = lookback_start(
            active_era, self.settings.maximum_history_eras, constants.history_depth
        )
        validators = await self.collect_validators(start_era, active_era)

        for v in validators:
            self.logger.info(
                "🔎 Stash inspected",
                stash=v.stash,
                name=v.name,
                active=v.is_active,
                claimed=[tuple(u) for u in v.claimed],
                unclaimed=[tuple(u) for u in v.unclaimed],
                warnings=v.warnings
            )
        return validators

    async def signer_details(self) -> SignerDetails:
        account = await self.client.signer_account()
        details = SignerDetails(
            account=account,
            name=await self.identity.display_name(account),
            free_balance=await self.client.account_balance(account),
        )

        existential_deposit = await self.client.existential_deposit()
        threshold = self.settings.existential_deposit_factor_warning * existential_deposit
        if details.free_balance <= threshold:
            details.warnings.append(LOW_FUNDS_WARNING)
            self.logger.warning(
                "⚠️ " + LOW_FUNDS_WARNING,
                signer=account,
                free_balance=details.free_balance,
                threshold=threshold
            )
        return details

    async def collect_validators(self, start_era: int, active_era: int) -> List[ValidatorRecord]:
        """One record per stash; stashes without a controller are not tracked."""
        stashes = await self.stash_source.load()
        active_set = await self.client.active_validators()

        validators: List[ValidatorRecord] = []
        has_identity = {}
        for stash in stashes:
            record = ValidatorRecord(stash=stash)
            record.name, has_identity[stash] = await self.identity.resolve(stash)

            controller = await self.client.bonded_controller(stash)
            if controller is None:
                record.warnings.append(NO_CONTROLLER_WARNING)
                self.logger.warning(NO_CONTROLLER_WARNING, stash=stash)
                validators.append(record)
                continue

            record.controller = controller
            record.is_active = stash in active_set
            record.claimed, record.unclaimed = await self.tracker.track(stash, start_era, active_era)
            validators.append(record)

        # Named validators first, then unnamed ones, warnings last
        validators.sort(key=lambda v: (
            bool(v.warnings),
            not has_identity[v.stash],
            v.name.lower() if has_identity[v.stash] else "",
        ))
        return validators

    def run_context(self, signer: SignerDetails, constants: ChainConstants) -> RunContext:
        return RunContext(
            signer=signer.account,
            available_balance=signer.free_balance,
            existential_deposit=constants.existential_deposit,
            max_extrinsic_weight=constants.max_extrinsic_weight,
            maximum_calls=self.settings.maximum_calls,
            maximum_payouts=self.settings.maximum_payouts,
        )

    async def collect_pool_calls(self) -> Tuple[List[AuxiliaryCall], Optional[PoolsSummary]]:
        if not self.settings.pools_enabled:
            return [], None
        return await PoolCallCollector(self.adapter, self.settings).collect()

    def network_info(self, active_era: int) -> NetworkInfo:
        profile = self.adapter.profile
        return NetworkInfo(
            name=profile.name,
            active_era=active_era,
            token_symbol=profile.token_symbol,
            token_decimals=profile.token_decimals,
            subdomain=profile.subdomain,
        )

    async def send_report(self, data: RunReport) -> None:
        run_interval = None if self.settings.is_era_driven else self.settings.run_interval
        report = build_report(data, run_interval)
        try:
            await self.notifier.send(report.message(), report.formatted_message())
        except NotificationError as e:
            self.logger.warning("Report notification failed", error=e.message)
