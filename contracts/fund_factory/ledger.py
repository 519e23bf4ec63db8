"""
Campaign Ledger Rules for FundChain

Pure subroutines implementing the per-campaign escrow state machine:

    OPEN --verify--> VERIFIED --raised >= target--> CLOSED

- Donations are only accepted while VERIFIED.
- Milestones can be completed once the campaign has been verified.
- Withdrawals are capped by the running sum of completed milestone
  amounts and by the amount actually raised.

Each subroutine takes the current ledger and returns an updated copy; the
FundFactory contract is responsible for loading and storing it.
"""

from algopy import Global, UInt64, arc4, subroutine

from .structs import (
    STATUS_CLOSED,
    STATUS_OPEN,
    STATUS_VERIFIED,
    CampaignLedger,
)


@subroutine
def new_ledger(target_amount: UInt64, milestone_count: UInt64) -> CampaignLedger:
    """
    Build the ledger for a freshly registered campaign.

    Args:
        target_amount: Funding target in microALGOs
        milestone_count: Number of milestones registered with the campaign

    Returns:
        Ledger in OPEN status with zeroed counters
    """
    now = Global.latest_timestamp
    return CampaignLedger(
        target_amount=arc4.UInt64(target_amount),
        amount_raised=arc4.UInt64(0),
        amount_withdrawn=arc4.UInt64(0),
        completed_amount=arc4.UInt64(0),
        donors_count=arc4.UInt64(0),
        milestone_count=arc4.UInt64(milestone_count),
        status=arc4.UInt8(STATUS_OPEN),
        created_at=arc4.UInt64(now),
        updated_at=arc4.UInt64(now),
    )


@subroutine
def mark_verified(ledger: CampaignLedger) -> CampaignLedger:
    """Move an OPEN campaign to VERIFIED."""
    assert ledger.status.native == STATUS_OPEN, "Campaign is not open"

    updated = ledger.copy()
    updated.status = arc4.UInt8(STATUS_VERIFIED)
    updated.updated_at = arc4.UInt64(Global.latest_timestamp)
    return updated


@subroutine
def record_donation(
    ledger: CampaignLedger,
    amount: UInt64,
    is_new_donor: bool,
) -> CampaignLedger:
    """
    Apply a donation to the ledger.

    The campaign closes automatically once the raised amount reaches
    the target.

    Args:
        ledger: Current campaign ledger
        amount: Donation amount in microALGOs
        is_new_donor: True if this is the donor's first donation

    Returns:
        Updated ledger
    """
    assert ledger.status.native == STATUS_VERIFIED, "Campaign is not accepting donations"
    assert amount > 0, "Donation must be positive"

    updated = ledger.copy()
    raised = ledger.amount_raised.native + amount
    updated.amount_raised = arc4.UInt64(raised)

    if is_new_donor:
        updated.donors_count = arc4.UInt64(ledger.donors_count.native + 1)

    if raised >= ledger.target_amount.native:
        updated.status = arc4.UInt8(STATUS_CLOSED)

    updated.updated_at = arc4.UInt64(Global.latest_timestamp)
    return updated


@subroutine
def record_milestone(ledger: CampaignLedger, amount: UInt64) -> CampaignLedger:
    """Add a completed milestone's amount to the withdrawal allowance."""
    assert ledger.status.native != STATUS_OPEN, "Campaign is not verified"

    updated = ledger.copy()
    updated.completed_amount = arc4.UInt64(ledger.completed_amount.native + amount)
    updated.updated_at = arc4.UInt64(Global.latest_timestamp)
    return updated


@subroutine
def record_withdrawal(ledger: CampaignLedger, amount: UInt64) -> CampaignLedger:
    """
    Apply a withdrawal to the ledger.

    Args:
        ledger: Current campaign ledger
        amount: Amount to withdraw in microALGOs

    Returns:
        Updated ledger
    """
    assert amount > 0, "Withdrawal must be positive"

    withdrawn = ledger.amount_withdrawn.native + amount
    assert withdrawn <= ledger.completed_amount.native, "Cannot withdraw more than completed milestones"
    assert withdrawn <= ledger.amount_raised.native, "Insufficient funds"

    updated = ledger.copy()
    updated.amount_withdrawn = arc4.UInt64(withdrawn)
    updated.updated_at = arc4.UInt64(Global.latest_timestamp)
    return updated


@subroutine
def withdrawable_amount(ledger: CampaignLedger) -> UInt64:
    """Amount the owner could withdraw right now."""
    cap = ledger.completed_amount.native
    if ledger.amount_raised.native < cap:
        cap = ledger.amount_raised.native
    return cap - ledger.amount_withdrawn.native
