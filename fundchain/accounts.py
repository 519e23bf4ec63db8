"""
Account helpers for FundChain scripts and the client.
"""

from dataclasses import dataclass

from algosdk import account, mnemonic
from algosdk.atomic_transaction_composer import AccountTransactionSigner

from fundchain.errors import ConfigurationError


@dataclass(frozen=True)
class Account:
    address: str
    private_key: str

    @property
    def signer(self) -> AccountTransactionSigner:
        return AccountTransactionSigner(self.private_key)

    @property
    def mnemonic(self) -> str:
        return mnemonic.from_private_key(self.private_key)


def from_private_key(private_key: str) -> Account:
    return Account(
        address=account.address_from_private_key(private_key),
        private_key=private_key,
    )


def from_mnemonic(phrase: str) -> Account:
    """
    Load an account from a 25-word mnemonic.

    Raises:
        ConfigurationError: If the mnemonic is empty or invalid
    """
    if not phrase or not phrase.strip():
        raise ConfigurationError("Mnemonic is empty")
    try:
        private_key = mnemonic.to_private_key(phrase.strip())
    except Exception as e:
        raise ConfigurationError(f"Invalid mnemonic: {e}") from e
    return from_private_key(private_key)


def generate_standalone_account() -> Account:
    """Generate a new account that is not managed by KMD."""
    private_key, address = account.generate_account()
    return Account(address=address, private_key=private_key)
