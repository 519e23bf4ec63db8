"""
ARC-4 Structs and Events for the FundChain Factory

Box layouts and log events shared by the FundFactory application and its
campaign ledger subroutines. The off-chain client decodes the same layouts
(see fundchain/abi.py), so field order here is part of the storage format.
"""

from algopy import arc4


# Campaign status constants
STATUS_OPEN = 0
STATUS_VERIFIED = 1
STATUS_CLOSED = 2


class CampaignInfo(arc4.Struct):
    """Write-once campaign metadata, stored in box camp_{id}."""

    owner: arc4.Address
    title: arc4.String
    description: arc4.String
    campaign_type: arc4.String
    image_hash: arc4.String


class CampaignLedger(arc4.Struct):
    """Mutable campaign accounting, stored in box ledger_{id}."""

    target_amount: arc4.UInt64
    amount_raised: arc4.UInt64
    amount_withdrawn: arc4.UInt64
    completed_amount: arc4.UInt64  # Sum of completed milestone amounts
    donors_count: arc4.UInt64
    milestone_count: arc4.UInt64
    status: arc4.UInt8
    created_at: arc4.UInt64
    updated_at: arc4.UInt64


class Milestone(arc4.Struct):
    """A funding milestone, stored in box mile_{campaign_id}{index}."""

    title: arc4.String
    description: arc4.String
    amount: arc4.UInt64
    is_completed: arc4.Bool


class CampaignDetails(arc4.Struct):
    """Summary returned by get_campaign_details."""

    title: arc4.String
    description: arc4.String
    target_amount: arc4.UInt64
    amount_raised: arc4.UInt64
    donors_count: arc4.UInt64
    status: arc4.UInt8
    created_at: arc4.UInt64
    updated_at: arc4.UInt64


# Events

class CampaignCreated(arc4.Struct):
    campaign_id: arc4.UInt64
    owner: arc4.Address
    title: arc4.String
    target_amount: arc4.UInt64


class CampaignVerified(arc4.Struct):
    campaign_id: arc4.UInt64
    admin: arc4.Address
    verified: arc4.Bool


class DonationReceived(arc4.Struct):
    campaign_id: arc4.UInt64
    donor: arc4.Address
    amount: arc4.UInt64
    amount_raised: arc4.UInt64


class MilestoneCompleted(arc4.Struct):
    campaign_id: arc4.UInt64
    milestone_id: arc4.UInt64
    amount: arc4.UInt64


class FundsWithdrawn(arc4.Struct):
    campaign_id: arc4.UInt64
    owner: arc4.Address
    amount: arc4.UInt64


class AdminUpdated(arc4.Struct):
    account: arc4.Address
    is_admin: arc4.Bool
