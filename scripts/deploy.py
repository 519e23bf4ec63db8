"""
Deployment Script for the FundChain FundFactory

Deploys the compiled FundFactory application and funds its account with
the base account minimum balance. Box storage is paid by the grouped
payments of create_campaign, donate and add_admin.
Run with: python scripts/deploy.py [--fund 0.1] [--sample]

Build the contract first:
    puyapy contracts/fund_factory --out-dir build

Environment variables required:
- ALGOD_SERVER: Algorand node URL
- ALGOD_TOKEN: Algorand node token
- DEPLOYER_MNEMONIC: 25-word mnemonic for deployer account (super admin)
- NETWORK: localnet | testnet | mainnet
"""

import argparse
import base64
import json
import sys
from pathlib import Path

from algosdk import logic, transaction
from algosdk.v2client import algod

from fundchain import abi
from fundchain.accounts import Account, from_mnemonic
from fundchain.client import FundChainClient
from fundchain.config import Settings, configure_logging
from fundchain.currency import algo_to_microalgo, microalgo_to_algo
from fundchain.errors import FundChainError

BUILD_DIR = Path("build")
APPROVAL_FILE = BUILD_DIR / "FundFactory.approval.teal"
CLEAR_FILE = BUILD_DIR / "FundFactory.clear.teal"

# admin (bytes), campaign_count (uint)
GLOBAL_SCHEMA = transaction.StateSchema(num_uints=1, num_byte_slices=1)
LOCAL_SCHEMA = transaction.StateSchema(num_uints=0, num_byte_slices=0)


def compile_teal(client: algod.AlgodClient, path: Path) -> bytes:
    """Compile TEAL source code using the Algorand node."""
    if not path.exists():
        raise FileNotFoundError(f"{path} not found. Build the contract first.")
    response = client.compile(path.read_text())
    return base64.b64decode(response["result"])


def deploy_factory(client: algod.AlgodClient, deployer: Account) -> tuple[int, str]:
    """Create the FundFactory application; returns (app_id, tx_id)."""
    approval_program = compile_teal(client, APPROVAL_FILE)
    clear_program = compile_teal(client, CLEAR_FILE)

    txn = transaction.ApplicationCreateTxn(
        sender=deployer.address,
        sp=client.suggested_params(),
        on_complete=transaction.OnComplete.NoOpOC,
        approval_program=approval_program,
        clear_program=clear_program,
        global_schema=GLOBAL_SCHEMA,
        local_schema=LOCAL_SCHEMA,
        app_args=[abi.selector("create")],
    )

    signed_txn = txn.sign(deployer.private_key)
    tx_id = client.send_transaction(signed_txn)
    print(f"   Transaction ID: {tx_id}")

    result = transaction.wait_for_confirmation(client, tx_id, 4)
    return result["application-index"], tx_id


def fund_app_account(client: algod.AlgodClient, deployer: Account, app_id: int, amount_algo: float) -> str:
    """Send ALGO to the application account to cover box storage."""
    txn = transaction.PaymentTxn(
        sender=deployer.address,
        sp=client.suggested_params(),
        receiver=logic.get_application_address(app_id),
        amt=algo_to_microalgo(amount_algo),
    )
    tx_id = client.send_transaction(txn.sign(deployer.private_key))
    transaction.wait_for_confirmation(client, tx_id, 4)
    return tx_id


def create_sample_campaign(client: FundChainClient) -> int:
    """Create and verify a sample medical campaign."""
    campaign_id = client.create_campaign(
        title="Test Medical Campaign",
        description="This is a test campaign for medical emergencies",
        target_amount="1",
        campaign_type="MEDICAL",
        image_hash="QmSampleImageHash",
        document_hashes=["QmSampleDocHash1", "QmSampleDocHash2"],
        milestone_titles=["Initial Tests", "Treatment Phase 1"],
        milestone_descriptions=["Initial diagnosis and tests", "First phase of treatment"],
        milestone_amounts=["0.4", "0.6"],
    )
    client.verify_campaign(campaign_id)
    return campaign_id


def main():
    parser = argparse.ArgumentParser(description="Deploy the FundChain FundFactory")
    parser.add_argument(
        "--fund",
        type=float,
        default=0.1,
        help="ALGO to send to the application account (base minimum balance)",
    )
    parser.add_argument(
        "--sample",
        action="store_true",
        help="Create and verify a sample campaign after deployment",
    )
    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("🚀 FUNDCHAIN - FUNDFACTORY DEPLOYMENT")
    print("=" * 60)

    try:
        settings = Settings.from_env()
        configure_logging(settings.log_level)
        deployer = from_mnemonic(settings.require_deployer_mnemonic())
    except FundChainError as e:
        print(f"❌ {e}")
        sys.exit(1)

    client = settings.algod_client()

    print(f"\n📍 Network: {settings.network}")
    print(f"📍 Deployer: {deployer.address}")

    info = client.account_info(deployer.address)
    print(f"💰 Balance: {microalgo_to_algo(info['amount'])} ALGO")

    if info["amount"] < algo_to_microalgo(args.fund) + 1_000_000:
        print(f"❌ Insufficient balance! Need at least {args.fund + 1} ALGO")
        sys.exit(1)

    print("\n" + "-" * 60)
    print("📄 DEPLOYING FUNDFACTORY")
    print("-" * 60)

    try:
        app_id, tx_id = deploy_factory(client, deployer)
    except Exception as e:
        print(f"   ❌ Failed: {e}")
        sys.exit(1)
    print(f"   ✅ Deployed! App ID: {app_id}")

    app_address = logic.get_application_address(app_id)
    print(f"\n💸 Funding application account with {args.fund} ALGO...")
    fund_tx_id = fund_app_account(client, deployer, app_id, args.fund)
    print(f"   ✅ Funded {app_address}")

    deployment_info = {
        "network": settings.network,
        "deployer": deployer.address,
        "contracts": {
            "fund_factory": {
                "app_id": app_id,
                "app_address": app_address,
                "tx_id": tx_id,
                "fund_tx_id": fund_tx_id,
            },
        },
    }

    if args.sample:
        print("\n📝 Creating sample campaign...")
        try:
            campaign_id = create_sample_campaign(FundChainClient(client, app_id, deployer))
            print(f"   ✅ Sample campaign {campaign_id} created and verified")
            deployment_info["sample_campaign_id"] = campaign_id
        except FundChainError as e:
            print(f"   ❌ Failed: {e}")

    print("\n" + "=" * 60)
    print("📋 DEPLOYMENT SUMMARY")
    print("=" * 60)
    print(f"\n   App ID: {app_id}")
    print(f"   App Address: {app_address}")
    print(f"   Explorer: {settings.application_url(app_id)}")

    with open("deployment.json", "w") as f:
        json.dump(deployment_info, f, indent=2)

    print(f"\n💾 Deployment info saved to: deployment.json")
    print("\n📝 Add this to your .env file:")
    print(f"   FUND_FACTORY_APP_ID={app_id}")

    print("\n" + "=" * 60)
    print("🎉 DEPLOYMENT COMPLETE!")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
