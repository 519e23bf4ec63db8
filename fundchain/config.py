"""
FundChain Configuration

Settings are read from the environment. A `.env` file in the working
directory is loaded first with python-dotenv, the same way the deployment
scripts load DEPLOYER_MNEMONIC.

Environment variables:
    NETWORK               localnet | testnet | mainnet (default: localnet)
    ALGOD_SERVER          Overrides the network's algod URL
    ALGOD_TOKEN           Overrides the network's algod token
    INDEXER_SERVER        Overrides the network's indexer URL
    DEPLOYER_MNEMONIC     25-word mnemonic of the deployer / super admin
    FUND_FACTORY_APP_ID   Application ID of the deployed FundFactory
    ALGO_TO_INR_RATE      Display conversion rate (default: 15.0)
    LOG_LEVEL             Python logging level (default: INFO)
"""

import logging
import os
from dataclasses import dataclass

from algosdk.v2client import algod
from dotenv import load_dotenv

from fundchain.errors import ConfigurationError


DEFAULT_ALGO_TO_INR_RATE = 15.0


@dataclass(frozen=True)
class NetworkPreset:
    name: str
    algod_server: str
    algod_token: str
    indexer_server: str
    explorer_url: str


NETWORKS = {
    "localnet": NetworkPreset(
        name="localnet",
        algod_server="http://localhost:4001",
        algod_token="a" * 64,
        indexer_server="http://localhost:8980",
        explorer_url="https://lora.algokit.io/localnet",
    ),
    "testnet": NetworkPreset(
        name="testnet",
        algod_server="https://testnet-api.algonode.cloud",
        algod_token="",
        indexer_server="https://testnet-idx.algonode.cloud",
        explorer_url="https://testnet.explorer.perawallet.app",
    ),
    "mainnet": NetworkPreset(
        name="mainnet",
        algod_server="https://mainnet-api.algonode.cloud",
        algod_token="",
        indexer_server="https://mainnet-idx.algonode.cloud",
        explorer_url="https://explorer.perawallet.app",
    ),
}


@dataclass(frozen=True)
class Settings:
    network: str
    algod_server: str
    algod_token: str
    indexer_server: str
    deployer_mnemonic: str | None = None
    app_id: int | None = None
    algo_to_inr_rate: float = DEFAULT_ALGO_TO_INR_RATE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            load_env_file: Load `.env` before reading the environment

        Returns:
            Settings instance

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        if load_env_file:
            load_dotenv()

        network = os.getenv("NETWORK", "localnet").strip().lower()
        if network not in NETWORKS:
            raise ConfigurationError(
                f"Unknown NETWORK '{network}' (expected one of: {', '.join(NETWORKS)})"
            )
        preset = NETWORKS[network]

        return cls(
            network=network,
            algod_server=os.getenv("ALGOD_SERVER") or preset.algod_server,
            algod_token=os.getenv("ALGOD_TOKEN", preset.algod_token),
            indexer_server=os.getenv("INDEXER_SERVER") or preset.indexer_server,
            deployer_mnemonic=os.getenv("DEPLOYER_MNEMONIC") or None,
            app_id=_parse_int("FUND_FACTORY_APP_ID"),
            algo_to_inr_rate=_parse_float("ALGO_TO_INR_RATE", DEFAULT_ALGO_TO_INR_RATE),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def explorer_url(self) -> str:
        return NETWORKS[self.network].explorer_url

    def application_url(self, app_id: int) -> str:
        return f"{self.explorer_url}/application/{app_id}"

    def transaction_url(self, tx_id: str) -> str:
        return f"{self.explorer_url}/tx/{tx_id}"

    def require_app_id(self) -> int:
        if self.app_id is None:
            raise ConfigurationError("FUND_FACTORY_APP_ID not set in environment")
        return self.app_id

    def require_deployer_mnemonic(self) -> str:
        if not self.deployer_mnemonic:
            raise ConfigurationError("DEPLOYER_MNEMONIC not set in environment")
        return self.deployer_mnemonic

    def algod_client(self) -> algod.AlgodClient:
        """Create an Algorand client for the configured node."""
        return algod.AlgodClient(self.algod_token, self.algod_server)


def _parse_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from None


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive")
    return value


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from LOG_LEVEL unless a level is given."""
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
