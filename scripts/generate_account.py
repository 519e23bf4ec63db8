"""
Account Generator Script for FundChain

Creates the accounts used to deploy and exercise the FundFactory:
the deployer (super admin), an extra admin, a campaign owner and a donor.
On LocalNet the accounts live in KMD wallets and can be funded from the
default dispenser wallet.

Usage:
    python scripts/generate_account.py --role deployer
    python scripts/generate_account.py --role donor --fund 10
    python scripts/generate_account.py --all --fund 10
    python scripts/generate_account.py --role deployer --standalone
"""

import argparse
import os

from algosdk import kmd, mnemonic, transaction
from algosdk.v2client import algod

from fundchain.accounts import generate_standalone_account
from fundchain.config import Settings
from fundchain.currency import algo_to_microalgo, microalgo_to_algo

ROLES = ("deployer", "admin", "owner", "donor")
DISPENSER_WALLET = "unencrypted-default-wallet"


def get_kmd_client() -> kmd.KMDClient:
    """Create KMD client for LocalNet."""
    server = os.getenv("KMD_SERVER", "http://localhost:4002")
    token = os.getenv("KMD_TOKEN", "a" * 64)
    return kmd.KMDClient(token, server)


def find_or_create_wallet(kmd_client: kmd.KMDClient, name: str, password: str = "") -> str:
    """
    Return the ID of the wallet called `name`, creating it if needed.

    Args:
        kmd_client: KMD client instance
        name: Wallet name
        password: Wallet password

    Returns:
        Wallet ID
    """
    for wallet in kmd_client.list_wallets():
        if wallet["name"] == name:
            return wallet["id"]

    wallet = kmd_client.create_wallet(name, password)
    print(f"✅ Created wallet '{name}'")
    return wallet["id"]


def get_account_from_kmd(kmd_client: kmd.KMDClient, name: str, password: str = "") -> tuple[str, str]:
    """
    Get the first account of a named KMD wallet, generating one if empty.

    Returns:
        Tuple of (address, private_key)
    """
    wallet_id = find_or_create_wallet(kmd_client, name, password)
    handle = kmd_client.init_wallet_handle(wallet_id, password)
    try:
        keys = kmd_client.list_keys(handle)
        if keys:
            address = keys[0]
            print(f"📍 Using existing account: {address}")
        else:
            address = kmd_client.generate_key(handle)
            print(f"✅ Generated new account: {address}")
        private_key = kmd_client.export_key(handle, password, address)
    finally:
        kmd_client.release_wallet_handle(handle)

    return address, private_key


def fund_from_dispenser(
    algod_client: algod.AlgodClient,
    kmd_client: kmd.KMDClient,
    receiver: str,
    amount_algo: float,
):
    """Fund an account from the LocalNet dispenser wallet."""
    wallet_id = None
    for wallet in kmd_client.list_wallets():
        if wallet["name"] == DISPENSER_WALLET:
            wallet_id = wallet["id"]
            break

    if wallet_id is None:
        print("❌ Default wallet not found. Make sure LocalNet is running.")
        return

    handle = kmd_client.init_wallet_handle(wallet_id, "")
    try:
        keys = kmd_client.list_keys(handle)
        if not keys:
            print("❌ No accounts in default wallet")
            return
        dispenser = keys[0]
        dispenser_key = kmd_client.export_key(handle, "", dispenser)
    finally:
        kmd_client.release_wallet_handle(handle)

    txn = transaction.PaymentTxn(
        sender=dispenser,
        sp=algod_client.suggested_params(),
        receiver=receiver,
        amt=algo_to_microalgo(amount_algo),
    )
    tx_id = algod_client.send_transaction(txn.sign(dispenser_key))
    transaction.wait_for_confirmation(algod_client, tx_id, 4)

    print(f"✅ Funded {receiver} with {amount_algo} ALGO")
    print(f"   Transaction: {tx_id}")


def check_balance(algod_client: algod.AlgodClient, address: str):
    try:
        info = algod_client.account_info(address)
        print(f"💰 Balance: {microalgo_to_algo(info['amount'])} ALGO")
    except Exception as e:
        print(f"❌ Error checking balance: {e}")


def env_line(role: str, mnemonic_phrase: str) -> str:
    return f"{role.upper()}_MNEMONIC={mnemonic_phrase}"


def setup_role(role: str, args, algod_client, kmd_client) -> str:
    """Create (or load) the account for one role; returns its .env line."""
    print(f"\n📝 {role}")

    if args.standalone:
        generated = generate_standalone_account()
        address, private_key = generated.address, generated.private_key
        print(f"✅ Generated standalone account: {address}")
    else:
        address, private_key = get_account_from_kmd(kmd_client, f"fundchain-{role}")

    if args.fund > 0 and not args.standalone:
        print(f"💸 Funding with {args.fund} ALGO...")
        fund_from_dispenser(algod_client, kmd_client, address, args.fund)

    if not args.standalone:
        check_balance(algod_client, address)

    return env_line(role, mnemonic.from_private_key(private_key))


def main():
    parser = argparse.ArgumentParser(description="Generate accounts for FundChain")
    parser.add_argument(
        "--role",
        choices=ROLES,
        default="deployer",
        help="Which account to create",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Create accounts for every role",
    )
    parser.add_argument(
        "--fund",
        type=float,
        default=0,
        help="Amount of ALGO to fund (from LocalNet dispenser)",
    )
    parser.add_argument(
        "--standalone",
        action="store_true",
        help="Generate standalone accounts (not in KMD)",
    )
    args = parser.parse_args()

    print("\n🔑 FundChain - Account Generator\n")
    print("=" * 50)

    settings = Settings.from_env()
    algod_client = None if args.standalone else settings.algod_client()
    kmd_client = None if args.standalone else get_kmd_client()

    roles = ROLES if args.all else (args.role,)
    lines = [setup_role(role, args, algod_client, kmd_client) for role in roles]

    print("\n⚠️  SAVE THESE MNEMONICS (never share them!)")
    print("📋 Add to .env file:")
    for line in lines:
        print(f"   {line}")
    if "deployer" in roles:
        print("   (DEPLOYER_MNEMONIC is the FundFactory super admin)")

    print("\n" + "=" * 50)
    print("Done!\n")


if __name__ == "__main__":
    main()
