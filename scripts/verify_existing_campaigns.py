"""
Verify Existing Campaigns

Lists every campaign registered with the FundFactory and verifies the
ones still OPEN, using the admin account.

Usage:
    python scripts/verify_existing_campaigns.py [--dry-run]

Environment variables required:
- FUND_FACTORY_APP_ID: Deployed FundFactory app ID
- ADMIN_MNEMONIC or DEPLOYER_MNEMONIC: An account in the admin set
"""

import argparse
import os
import sys

from fundchain.accounts import from_mnemonic
from fundchain.client import FundChainClient
from fundchain.config import Settings, configure_logging
from fundchain.errors import FundChainError


def main():
    parser = argparse.ArgumentParser(description="Verify OPEN FundChain campaigns")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only list campaigns, do not verify",
    )
    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("🔍 FUNDCHAIN - VERIFY EXISTING CAMPAIGNS")
    print("=" * 60)

    try:
        settings = Settings.from_env()
        configure_logging(settings.log_level)
        admin = from_mnemonic(os.getenv("ADMIN_MNEMONIC") or settings.require_deployer_mnemonic())
        client = FundChainClient(settings.algod_client(), settings.require_app_id(), admin)
    except FundChainError as e:
        print(f"❌ {e}")
        sys.exit(1)

    print(f"\n📍 Admin: {admin.address}")
    if not client.is_admin(admin.address):
        print("❌ Account is not in the admin set")
        sys.exit(1)

    campaign_ids = client.get_campaign_ids()
    print(f"📍 Found {len(campaign_ids)} campaigns")

    verified = 0
    failed = 0
    for campaign_id in campaign_ids:
        campaign = client.get_campaign(campaign_id)
        print(f"\n--- Campaign {campaign_id}: {campaign.title} ---")
        print(f"   Status: {campaign.status}")
        print(f"   Target: {campaign.target_amount} ALGO")
        print(f"   Raised: {campaign.amount_raised} ALGO")

        if campaign.status == "VERIFIED":
            print("   ✅ Campaign already verified")
            continue
        if campaign.status == "CLOSED":
            print("   🔒 Campaign is closed")
            continue
        if args.dry_run:
            print("   ⏳ Awaiting verification")
            continue

        print("   🔄 Verifying campaign...")
        try:
            result = client.verify_campaign(campaign_id)
        except FundChainError as e:
            print(f"   ❌ Failed to verify campaign: {e}")
            failed += 1
            continue
        print(f"   ✅ Campaign verified! Tx: {result.tx_id}")
        print(f"   Status updated to: {client.get_campaign(campaign_id).status}")
        verified += 1

    print("\n" + "=" * 60)
    print(f"🎉 Verification check complete! Verified: {verified}, failed: {failed}")
    print("=" * 60 + "\n")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
