"""
Export FundFactory ABI and Deployment Addresses

Copies the ARC-56 (or ARC-32) app spec produced by puyapy into
exports/abis/ and writes exports/addresses.json from deployment.json,
for consumption by a frontend.

Usage:
    python scripts/export_abi.py
"""

import json
import shutil
import sys
from pathlib import Path

from algosdk import logic

from fundchain import abi

BUILD_DIR = Path("build")
EXPORT_DIR = Path("exports")
APP_SPEC_FILES = ("FundFactory.arc56.json", "FundFactory.arc32.json")


def export_app_spec(abi_dir: Path) -> Path:
    """Copy the app spec, or write a plain ARC-4 contract description."""
    for name in APP_SPEC_FILES:
        source = BUILD_DIR / name
        if source.exists():
            target = abi_dir / name
            shutil.copyfile(source, target)
            return target

    contract = {
        "name": "FundFactory",
        "methods": [method.dictify() for method in abi.contract_methods()],
    }
    target = abi_dir / "FundFactory.json"
    target.write_text(json.dumps(contract, indent=2))
    return target


def export_addresses(deployment_file: Path, target: Path) -> dict:
    deployment = json.loads(deployment_file.read_text())
    app_id = deployment["contracts"]["fund_factory"]["app_id"]
    addresses = {
        "network": deployment["network"],
        "FundFactory": {
            "appId": app_id,
            "appAddress": logic.get_application_address(app_id),
        },
    }
    target.write_text(json.dumps(addresses, indent=2))
    return addresses


def main():
    print("\n" + "=" * 60)
    print("📦 FUNDCHAIN - EXPORT ABI & ADDRESSES")
    print("=" * 60)

    abi_dir = EXPORT_DIR / "abis"
    abi_dir.mkdir(parents=True, exist_ok=True)

    path = export_app_spec(abi_dir)
    print(f"\n✅ ABI exported to: {path}")

    deployment_file = Path("deployment.json")
    if not deployment_file.exists():
        print("❌ deployment.json not found. Run scripts/deploy.py first.")
        sys.exit(1)

    addresses = export_addresses(deployment_file, EXPORT_DIR / "addresses.json")
    print(f"✅ Addresses exported to: {EXPORT_DIR / 'addresses.json'}")
    print(f"   App ID: {addresses['FundFactory']['appId']}")
    print(f"   App Address: {addresses['FundFactory']['appAddress']}")

    print("\n" + "=" * 60 + "\n")


if __name__ == "__main__":
    main()
