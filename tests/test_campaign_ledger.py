"""
Tests for the campaign escrow ledger

Tests cover:
- Donations and donor accounting
- Automatic close when the target is reached
- Milestone completion
- Milestone-gated withdrawals
- Ledger subroutines in isolation
"""

from unittest.mock import patch

import pytest
from algopy import UInt64, arc4
from algopy_testing import AlgopyTestContext

from contracts.fund_factory.contract import FundFactory
from contracts.fund_factory.ledger import (
    mark_verified,
    new_ledger,
    record_donation,
    record_milestone,
    record_withdrawal,
    withdrawable_amount,
)
from contracts.fund_factory.structs import (
    STATUS_CLOSED,
    STATUS_OPEN,
    STATUS_VERIFIED,
    DonationReceived,
    FundsWithdrawn,
    MilestoneCompleted,
)
from fundchain import abi
from conftest import (
    MILESTONE_AMOUNTS,
    TARGET_AMOUNT,
    app_payment,
    as_sender,
    donate,
    register_campaign,
)


class TestDonations:
    """donate()."""

    def test_accepts_donation(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor):
        donate(context, factory, campaign_id, donor, 500_000)

        details = factory.get_campaign_details(campaign_id)
        assert details.amount_raised.native == 500_000
        assert details.donors_count.native == 1
        assert factory.get_donation(campaign_id, arc4.Address(donor)).native == 500_000

    def test_below_target_stays_verified(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor):
        donate(context, factory, campaign_id, donor, 900_000)

        assert factory.get_campaign_details(campaign_id).status.native == STATUS_VERIFIED

    def test_full_target_closes_campaign(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor):
        donate(context, factory, campaign_id, donor, TARGET_AMOUNT)

        assert factory.get_campaign_details(campaign_id).status.native == STATUS_CLOSED

    def test_overfunding_closes_campaign(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor):
        donate(context, factory, campaign_id, donor, TARGET_AMOUNT + 250_000)

        details = factory.get_campaign_details(campaign_id)
        assert details.status.native == STATUS_CLOSED
        assert details.amount_raised.native == TARGET_AMOUNT + 250_000

    def test_repeat_donor_counted_once(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor):
        donate(context, factory, campaign_id, donor, 100_000)
        donate(context, factory, campaign_id, donor, 200_000)

        details = factory.get_campaign_details(campaign_id)
        assert details.donors_count.native == 1
        assert details.amount_raised.native == 300_000
        assert factory.get_donation(campaign_id, arc4.Address(donor)).native == 300_000

    def test_distinct_donors(self, context: AlgopyTestContext, factory: FundFactory, campaign_id):
        for _ in range(3):
            donate(context, factory, campaign_id, context.any.account(), 100_000)

        assert factory.get_campaign_details(campaign_id).donors_count.native == 3

    def test_no_donation_recorded(self, context: AlgopyTestContext, factory: FundFactory, campaign_id):
        assert factory.get_donation(campaign_id, arc4.Address(context.any.account())).native == 0

    def test_unverified_campaign_rejects_donations(
        self, context: AlgopyTestContext, factory: FundFactory, owner, donor
    ):
        campaign_id = register_campaign(context, factory, owner)

        with pytest.raises(AssertionError, match="Campaign is not accepting donations"):
            donate(context, factory, campaign_id, donor, 100_000)

    def test_closed_campaign_rejects_donations(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor
    ):
        donate(context, factory, campaign_id, donor, TARGET_AMOUNT)

        with pytest.raises(AssertionError, match="Campaign is not accepting donations"):
            donate(context, factory, campaign_id, donor, 1_000)

    def test_zero_donation_rejected(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor):
        with pytest.raises(AssertionError, match="Donation must be positive"):
            donate(context, factory, campaign_id, donor, 0)

    def test_payment_must_target_application(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor
    ):
        payment = context.any.txn.payment(
            sender=donor,
            receiver=context.any.account(),
            amount=UInt64(100_000),
        )

        with pytest.raises(AssertionError, match="Payment must go to the application"):
            factory.donate(campaign_id, payment)

    def test_first_donation_funds_donor_record(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor
    ):
        payment = app_payment(context, factory, donor, abi.DONATION_BOX_COST + 100_000)

        factory.donate(campaign_id, payment)

        # Only the part above the donor box cost is credited
        assert factory.get_campaign_details(campaign_id).amount_raised.native == 100_000
        assert factory.get_donation(campaign_id, arc4.Address(donor)).native == 100_000

    def test_repeat_donation_is_credited_in_full(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor
    ):
        donate(context, factory, campaign_id, donor, 100_000)

        factory.donate(campaign_id, app_payment(context, factory, donor, 50_000))

        assert factory.get_campaign_details(campaign_id).amount_raised.native == 150_000

    def test_first_donation_must_cover_donor_record(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor
    ):
        payment = app_payment(context, factory, donor, abi.DONATION_BOX_COST - 1)

        with pytest.raises(AssertionError, match="Donation does not cover donor record"):
            factory.donate(campaign_id, payment)

    def test_donation_is_emitted(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor):
        donate(context, factory, campaign_id, donor, 100_000)

        with patch.object(arc4, "emit", wraps=arc4.emit) as emit:
            donate(context, factory, campaign_id, donor, 200_000)

        event = emit.call_args.args[0]
        assert isinstance(event, DonationReceived)
        assert event.campaign_id == campaign_id
        assert event.donor.native == donor
        assert event.amount.native == 200_000
        assert event.amount_raised.native == 300_000


class TestMilestones:
    """complete_milestone()."""

    def test_owner_completes_milestone(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner, donor
    ):
        # Donate below target to keep the campaign verified
        donate(context, factory, campaign_id, donor, 500_000)

        with as_sender(context, owner):
            factory.complete_milestone(campaign_id, arc4.UInt64(0))

        assert factory.get_milestone_details(campaign_id, arc4.UInt64(0)).is_completed.native
        assert not factory.get_milestone_details(campaign_id, arc4.UInt64(1)).is_completed.native
        assert factory.get_campaign_ledger(campaign_id).completed_amount.native == MILESTONE_AMOUNTS[0]

    def test_completion_is_emitted(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner):
        with patch.object(arc4, "emit", wraps=arc4.emit) as emit:
            with as_sender(context, owner):
                factory.complete_milestone(campaign_id, arc4.UInt64(1))

        event = emit.call_args.args[0]
        assert isinstance(event, MilestoneCompleted)
        assert event.campaign_id == campaign_id
        assert event.milestone_id.native == 1
        assert event.amount.native == MILESTONE_AMOUNTS[1]

    def test_only_owner_completes_milestone(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, donor
    ):
        with pytest.raises(AssertionError, match="Caller is not the campaign owner"):
            with as_sender(context, donor):
                factory.complete_milestone(campaign_id, arc4.UInt64(0))

    def test_cannot_complete_twice(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner):
        with as_sender(context, owner):
            factory.complete_milestone(campaign_id, arc4.UInt64(0))

        with pytest.raises(AssertionError, match="Milestone already completed"):
            with as_sender(context, owner):
                factory.complete_milestone(campaign_id, arc4.UInt64(0))

    def test_unknown_milestone(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner):
        with pytest.raises(AssertionError, match="Milestone does not exist"):
            with as_sender(context, owner):
                factory.complete_milestone(campaign_id, arc4.UInt64(2))

    def test_open_campaign_cannot_complete(self, context: AlgopyTestContext, factory: FundFactory, owner):
        campaign_id = register_campaign(context, factory, owner)

        with pytest.raises(AssertionError, match="Campaign is not verified"):
            with as_sender(context, owner):
                factory.complete_milestone(campaign_id, arc4.UInt64(0))

    def test_closed_campaign_can_complete(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner, donor
    ):
        donate(context, factory, campaign_id, donor, TARGET_AMOUNT)

        with as_sender(context, owner):
            factory.complete_milestone(campaign_id, arc4.UInt64(1))

        assert factory.get_campaign_ledger(campaign_id).completed_amount.native == MILESTONE_AMOUNTS[1]


class TestWithdrawals:
    """withdraw()."""

    def test_withdraw_after_milestone(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner, donor
    ):
        donate(context, factory, campaign_id, donor, MILESTONE_AMOUNTS[0])

        with as_sender(context, owner):
            factory.complete_milestone(campaign_id, arc4.UInt64(0))
        with as_sender(context, owner):
            factory.withdraw(campaign_id, arc4.UInt64(MILESTONE_AMOUNTS[0]))

        ledger = factory.get_campaign_ledger(campaign_id)
        assert ledger.amount_withdrawn.native == MILESTONE_AMOUNTS[0]
        assert factory.get_withdrawable_amount(campaign_id).native == 0

    def test_withdrawal_pays_owner(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner, donor
    ):
        donate(context, factory, campaign_id, donor, 900_000)
        with as_sender(context, owner):
            factory.complete_milestone(campaign_id, arc4.UInt64(0))

        with patch.object(arc4, "emit", wraps=arc4.emit) as emit:
            with as_sender(context, owner):
                factory.withdraw(campaign_id, arc4.UInt64(MILESTONE_AMOUNTS[0]))

        payout = context.txn.last_group.get_itxn_group(0).payment(0)
        assert payout.receiver == owner
        assert payout.amount == MILESTONE_AMOUNTS[0]
        assert payout.fee == 0

        event = emit.call_args.args[0]
        assert isinstance(event, FundsWithdrawn)
        assert event.campaign_id == campaign_id
        assert event.owner.native == owner
        assert event.amount.native == MILESTONE_AMOUNTS[0]

    def test_cannot_withdraw_beyond_completed_milestones(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner, donor
    ):
        donate(context, factory, campaign_id, donor, 900_000)
        with as_sender(context, owner):
            factory.complete_milestone(campaign_id, arc4.UInt64(0))

        with pytest.raises(AssertionError, match="Cannot withdraw more than completed milestones"):
            with as_sender(context, owner):
                factory.withdraw(campaign_id, arc4.UInt64(500_000))

        # The completed milestone amount is still withdrawable
        with as_sender(context, owner):
            factory.withdraw(campaign_id, arc4.UInt64(MILESTONE_AMOUNTS[0]))
        assert factory.get_campaign_ledger(campaign_id).amount_withdrawn.native == MILESTONE_AMOUNTS[0]

    def test_withdrawals_are_cumulative(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner, donor
    ):
        donate(context, factory, campaign_id, donor, 900_000)
        with as_sender(context, owner):
            factory.complete_milestone(campaign_id, arc4.UInt64(0))

        with as_sender(context, owner):
            factory.withdraw(campaign_id, arc4.UInt64(300_000))

        assert factory.get_withdrawable_amount(campaign_id).native == 100_000
        with pytest.raises(AssertionError, match="Cannot withdraw more than completed milestones"):
            with as_sender(context, owner):
                factory.withdraw(campaign_id, arc4.UInt64(200_000))

    def test_cannot_withdraw_more_than_raised(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner, donor
    ):
        donate(context, factory, campaign_id, donor, 100_000)
        with as_sender(context, owner):
            factory.complete_milestone(campaign_id, arc4.UInt64(0))

        assert factory.get_withdrawable_amount(campaign_id).native == 100_000
        with pytest.raises(AssertionError, match="Insufficient funds"):
            with as_sender(context, owner):
                factory.withdraw(campaign_id, arc4.UInt64(MILESTONE_AMOUNTS[0]))

    def test_no_completed_milestone_blocks_withdrawal(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner, donor
    ):
        donate(context, factory, campaign_id, donor, TARGET_AMOUNT)

        with pytest.raises(AssertionError, match="Cannot withdraw more than completed milestones"):
            with as_sender(context, owner):
                factory.withdraw(campaign_id, arc4.UInt64(1))

    def test_only_owner_withdraws(
        self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner, donor
    ):
        donate(context, factory, campaign_id, donor, TARGET_AMOUNT)
        with as_sender(context, owner):
            factory.complete_milestone(campaign_id, arc4.UInt64(0))

        with pytest.raises(AssertionError, match="Caller is not the campaign owner"):
            with as_sender(context, donor):
                factory.withdraw(campaign_id, arc4.UInt64(MILESTONE_AMOUNTS[0]))

    def test_zero_withdrawal_rejected(self, context: AlgopyTestContext, factory: FundFactory, campaign_id, owner):
        with pytest.raises(AssertionError, match="Withdrawal must be positive"):
            with as_sender(context, owner):
                factory.withdraw(campaign_id, arc4.UInt64(0))


class TestLedgerSubroutines:
    """The state machine without the contract around it."""

    def test_new_ledger_is_open(self, context: AlgopyTestContext):
        ledger = new_ledger(UInt64(1_000), UInt64(2))

        assert ledger.status.native == STATUS_OPEN
        assert ledger.target_amount.native == 1_000
        assert ledger.milestone_count.native == 2
        assert ledger.amount_raised.native == 0

    def test_status_moves_forward(self, context: AlgopyTestContext):
        ledger = mark_verified(new_ledger(UInt64(1_000), UInt64(1)))
        assert ledger.status.native == STATUS_VERIFIED

        ledger = record_donation(ledger, UInt64(999), True)
        assert ledger.status.native == STATUS_VERIFIED

        ledger = record_donation(ledger, UInt64(1), False)
        assert ledger.status.native == STATUS_CLOSED
        assert ledger.donors_count.native == 1

        with pytest.raises(AssertionError, match="Campaign is not open"):
            mark_verified(ledger)

    def test_record_donation_leaves_input_untouched(self, context: AlgopyTestContext):
        ledger = mark_verified(new_ledger(UInt64(1_000), UInt64(1)))

        record_donation(ledger, UInt64(500), True)

        assert ledger.amount_raised.native == 0

    def test_withdrawable_amount_is_capped_by_both_limits(self, context: AlgopyTestContext):
        ledger = mark_verified(new_ledger(UInt64(1_000), UInt64(2)))
        ledger = record_donation(ledger, UInt64(300), True)
        ledger = record_milestone(ledger, UInt64(400))

        assert withdrawable_amount(ledger) == 300

        ledger = record_donation(ledger, UInt64(500), True)
        assert withdrawable_amount(ledger) == 400

        ledger = record_withdrawal(ledger, UInt64(150))
        assert withdrawable_amount(ledger) == 250


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
