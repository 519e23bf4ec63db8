"""
FundChain Interaction Walkthrough

Runs a full campaign lifecycle against a deployed FundFactory:
create -> verify -> donate -> complete milestone -> withdraw.

Usage:
    python scripts/interact.py

Environment variables required:
- FUND_FACTORY_APP_ID: Deployed FundFactory app ID
- DEPLOYER_MNEMONIC: Super admin; also acts as campaign owner
- DONOR_MNEMONIC: Funded donor account
"""

import os
import sys

from fundchain.accounts import from_mnemonic
from fundchain.client import FundChainClient
from fundchain.config import Settings, configure_logging
from fundchain.currency import algo_to_inr, format_currency
from fundchain.errors import FundChainError


def print_campaign(client: FundChainClient, campaign_id: int, rate: float):
    campaign = client.get_campaign(campaign_id)
    print(f"\n📋 Campaign {campaign_id}")
    print(f"   Title: {campaign.title}")
    print(f"   Description: {campaign.description}")
    print(f"   Target: {campaign.target_amount} ALGO "
          f"({format_currency(algo_to_inr(campaign.target_amount, rate))})")
    print(f"   Raised: {campaign.amount_raised} ALGO ({campaign.percent_raised}%)")
    print(f"   Withdrawn: {campaign.amount_withdrawn} ALGO")
    print(f"   Donors: {campaign.donors_count}")
    print(f"   Status: {campaign.status}")
    print(f"   Created: {campaign.created_at}")
    print(f"   Updated: {campaign.updated_at}")
    for milestone in campaign.milestones:
        mark = "✅" if milestone.is_completed else "⏳"
        print(f"   {mark} Milestone {milestone.index}: {milestone.title} ({milestone.amount} ALGO)")


def main():
    print("\n" + "=" * 60)
    print("🤝 FUNDCHAIN - INTERACTION WALKTHROUGH")
    print("=" * 60)

    try:
        settings = Settings.from_env()
        configure_logging(settings.log_level)
        owner = from_mnemonic(settings.require_deployer_mnemonic())
        donor = from_mnemonic(os.getenv("DONOR_MNEMONIC", ""))
        app_id = settings.require_app_id()
    except FundChainError as e:
        print(f"❌ {e}")
        sys.exit(1)

    algod_client = settings.algod_client()
    as_owner = FundChainClient(algod_client, app_id, owner)
    as_donor = FundChainClient(algod_client, app_id, donor)

    print(f"\n📍 App ID: {app_id}")
    print(f"📍 Owner / admin: {owner.address}")
    print(f"📍 Donor: {donor.address}")

    try:
        print("\n1. Creating campaign...")
        campaign_id = as_owner.create_campaign(
            title="Test Campaign",
            description="This is a test campaign created through the interact script",
            target_amount="0.5",
            campaign_type="TEST",
            image_hash="QmTestImageHash",
            document_hashes=["QmTestDoc1", "QmTestDoc2"],
            milestone_titles=["Milestone 1", "Milestone 2"],
            milestone_descriptions=["First milestone", "Second milestone"],
            milestone_amounts=["0.2", "0.3"],
        )
        print(f"   ✅ Campaign ID: {campaign_id}")

        print("\n2. Verifying campaign...")
        as_owner.verify_campaign(campaign_id)
        print(f"   ✅ Status: {as_owner.get_campaign(campaign_id).status}")

        print("\n3. Donating 0.2 ALGO...")
        as_donor.donate(campaign_id, "0.2")
        campaign = as_owner.get_campaign(campaign_id)
        print(f"   ✅ Raised: {campaign.amount_raised} ALGO from {campaign.donors_count} donor(s)")

        print("\n4. Completing first milestone...")
        as_owner.complete_milestone(campaign_id, 0)
        print("   ✅ Milestone 0 completed")

        print("\n5. Withdrawing milestone funds...")
        result = as_owner.withdraw(campaign_id, "0.2")
        print(f"   ✅ Withdrawn 0.2 ALGO")
        print(f"   Explorer: {settings.transaction_url(result.tx_id)}")

        print_campaign(as_owner, campaign_id, settings.algo_to_inr_rate)
    except FundChainError as e:
        print(f"   ❌ Failed: {e}")
        sys.exit(1)

    print("\n" + "=" * 60)
    print("🎉 INTERACTION COMPLETE!")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
