"""
FundChain Client

Reads FundFactory state straight from algod (global state and boxes) and
submits ABI method calls with an AtomicTransactionComposer.

Usage:
    settings = Settings.from_env()
    client = FundChainClient.from_settings(settings)
    for campaign in client.get_all_campaigns():
        print(campaign.title, campaign.status, campaign.amount_raised)
"""

import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from algosdk import constants, encoding, logic, transaction
from algosdk.atomic_transaction_composer import (
    AtomicTransactionComposer,
    AtomicTransactionResponse,
    TransactionWithSigner,
)
from algosdk.error import (
    AlgodHTTPError,
    AlgodResponseError,
    AtomicTransactionComposerError,
    ConfirmationTimeoutError,
)
from algosdk.v2client import algod

from fundchain import abi
from fundchain.accounts import Account, from_mnemonic
from fundchain.config import Settings
from fundchain.currency import algo_to_microalgo, microalgo_to_algo
from fundchain.errors import (
    CampaignNotFoundError,
    FundChainError,
    NotCampaignOwnerError,
    TransactionFailedError,
)

logger = logging.getLogger(__name__)

WAIT_ROUNDS = 4
# Registrations racing for the same campaign ID are retried with the new count
CREATE_ATTEMPTS = 3

# Submission, rejection and confirmation failures raised by the composer
SUBMIT_ERRORS = (
    AlgodHTTPError,
    AlgodResponseError,
    AtomicTransactionComposerError,
    ConfirmationTimeoutError,
)


@dataclass
class MilestoneView:
    index: int
    title: str
    description: str
    amount: str
    amount_microalgo: int
    is_completed: bool


@dataclass
class CampaignView:
    """Display-ready campaign, amounts in ALGO and timestamps in ISO 8601."""

    campaign_id: int
    title: str
    description: str
    campaign_type: str
    image_hash: str
    owner: str
    target_amount: str
    amount_raised: str
    amount_withdrawn: str
    donors_count: int
    status: str
    created_at: str
    updated_at: str
    percent_raised: float
    withdrawable_amount: str
    document_hashes: list[str] = field(default_factory=list)
    milestones: list[MilestoneView] = field(default_factory=list)


@dataclass
class TransactionResult:
    tx_id: str
    confirmed_round: int
    return_value: object = None


def iso_timestamp(seconds: int) -> str:
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def percent_raised(amount_raised: int, target_amount: int) -> float:
    """Funding progress in percent, capped at 100."""
    if target_amount <= 0:
        return 0.0
    return round(min(100.0, amount_raised * 100 / target_amount), 2)


class FundChainClient:
    """
    Client for a deployed FundFactory application.

    Args:
        algod_client: Algorand client
        app_id: FundFactory application ID
        sender: Account used to sign write calls (optional for reads)
    """

    def __init__(
        self,
        algod_client: algod.AlgodClient,
        app_id: int,
        sender: Account | None = None,
    ):
        self.algod = algod_client
        self.app_id = app_id
        self.sender = sender

    @classmethod
    def from_settings(cls, settings: Settings | None = None, sender: Account | None = None):
        settings = settings or Settings.from_env()
        if sender is None and settings.deployer_mnemonic:
            sender = from_mnemonic(settings.deployer_mnemonic)
        return cls(settings.algod_client(), settings.require_app_id(), sender)

    @property
    def app_address(self) -> str:
        return logic.get_application_address(self.app_id)

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def read_global_state(self) -> dict:
        """Read global state of the application."""
        try:
            app_info = self.algod.application_info(self.app_id)
        except AlgodHTTPError as e:
            logger.error("Failed to read application %s: %s", self.app_id, e)
            raise FundChainError(f"Cannot read application {self.app_id}: {e}") from e

        state = {}
        for item in app_info.get("params", {}).get("global-state", []):
            key = base64.b64decode(item["key"]).decode("utf-8")
            value = item["value"]
            if value["type"] == 1:  # bytes
                state[key] = base64.b64decode(value["bytes"])
            else:  # uint
                state[key] = value["uint"]
        return state

    def _read_box(self, name: bytes) -> bytes | None:
        try:
            response = self.algod.application_box_by_name(self.app_id, name)
        except AlgodHTTPError as e:
            if e.code == 404:
                return None
            logger.error("Failed to read box %r: %s", name, e)
            raise FundChainError(f"Cannot read box storage: {e}") from e
        return base64.b64decode(response["value"])

    def _require_box(self, name: bytes, campaign_id: int) -> bytes:
        value = self._read_box(name)
        if value is None:
            raise CampaignNotFoundError(campaign_id)
        return value

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_super_admin(self) -> str:
        return encoding.encode_address(self.read_global_state()[abi.ADMIN_KEY.decode()])

    def is_admin(self, address: str) -> bool:
        if address == self.get_super_admin():
            return True
        return self._read_box(abi.admin_box(address)) is not None

    def get_campaign_count(self) -> int:
        return self.read_global_state().get(abi.CAMPAIGN_COUNT_KEY.decode(), 0)

    def get_campaign_ids(self) -> list[int]:
        return list(range(self.get_campaign_count()))

    def is_campaign(self, campaign_id: int) -> bool:
        return self._read_box(abi.campaign_box(campaign_id)) is not None

    def get_campaign_info(self, campaign_id: int) -> abi.CampaignInfo:
        return abi.decode_campaign_info(self._require_box(abi.campaign_box(campaign_id), campaign_id))

    def get_campaign_ledger(self, campaign_id: int) -> abi.CampaignLedger:
        return abi.decode_campaign_ledger(self._require_box(abi.ledger_box(campaign_id), campaign_id))

    def get_document_hashes(self, campaign_id: int) -> list[str]:
        return abi.decode_documents(self._require_box(abi.documents_box(campaign_id), campaign_id))

    def get_milestones(self, campaign_id: int) -> list[MilestoneView]:
        ledger = self.get_campaign_ledger(campaign_id)
        milestones = []
        for index in range(ledger.milestone_count):
            value = self._require_box(abi.milestone_box(campaign_id, index), campaign_id)
            milestone = abi.decode_milestone(value)
            milestones.append(
                MilestoneView(
                    index=index,
                    title=milestone.title,
                    description=milestone.description,
                    amount=microalgo_to_algo(milestone.amount),
                    amount_microalgo=milestone.amount,
                    is_completed=milestone.is_completed,
                )
            )
        return milestones

    def get_donation(self, campaign_id: int, donor: str) -> int:
        """Total microALGOs donated by `donor` to the campaign (0 if none)."""
        value = self._read_box(abi.donation_box(campaign_id, donor))
        return abi.decode_uint64(value) if value is not None else 0

    def get_campaign(self, campaign_id: int) -> CampaignView:
        """
        Load a campaign with its milestones and documents.

        Raises:
            CampaignNotFoundError: If no campaign has this ID
        """
        info = self.get_campaign_info(campaign_id)
        ledger = self.get_campaign_ledger(campaign_id)

        return CampaignView(
            campaign_id=campaign_id,
            title=info.title,
            description=info.description,
            campaign_type=info.campaign_type,
            image_hash=info.image_hash,
            owner=info.owner,
            target_amount=microalgo_to_algo(ledger.target_amount),
            amount_raised=microalgo_to_algo(ledger.amount_raised),
            amount_withdrawn=microalgo_to_algo(ledger.amount_withdrawn),
            donors_count=ledger.donors_count,
            status=ledger.status_name,
            created_at=iso_timestamp(ledger.created_at),
            updated_at=iso_timestamp(ledger.updated_at),
            percent_raised=percent_raised(ledger.amount_raised, ledger.target_amount),
            withdrawable_amount=microalgo_to_algo(ledger.withdrawable_amount),
            document_hashes=self.get_document_hashes(campaign_id),
            milestones=self.get_milestones(campaign_id),
        )

    def get_all_campaigns(self) -> list[CampaignView]:
        return [self.get_campaign(campaign_id) for campaign_id in self.get_campaign_ids()]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _require_sender(self) -> Account:
        if self.sender is None:
            raise FundChainError("A signing account is required for this operation")
        return self.sender

    def _require_owner(self, campaign_id: int, action: str) -> Account:
        sender = self._require_sender()
        info = self.get_campaign_info(campaign_id)
        if info.owner != sender.address:
            raise NotCampaignOwnerError(action, campaign_id)
        return sender

    def _box_references(self, names: list[bytes]) -> list[tuple[int, bytes]]:
        if len(names) > abi.MAX_BOX_REFERENCES:
            raise FundChainError(f"Too many box references ({len(names)})")
        boxes = [(self.app_id, name) for name in names]
        # Empty references add box read/write budget
        boxes += [(self.app_id, b"")] * (abi.MAX_BOX_REFERENCES - len(boxes))
        return boxes

    def _payment(self, amount: int) -> TransactionWithSigner:
        """Payment from the sender to the application, for grouping with a call."""
        sender = self._require_sender()
        payment = transaction.PaymentTxn(
            sender=sender.address,
            sp=self.algod.suggested_params(),
            receiver=self.app_address,
            amt=amount,
        )
        return TransactionWithSigner(payment, sender.signer)

    def _call(
        self,
        method_name: str,
        method_args: list,
        boxes: list[bytes],
        inner_transactions: int = 0,
    ) -> TransactionResult:
        sender = self._require_sender()

        params = self.algod.suggested_params()
        if inner_transactions:
            # Outer call pays for its inner transactions
            params.flat_fee = True
            params.fee = constants.MIN_TXN_FEE * (1 + inner_transactions)

        composer = AtomicTransactionComposer()
        composer.add_method_call(
            app_id=self.app_id,
            method=abi.method(method_name),
            sender=sender.address,
            sp=params,
            signer=sender.signer,
            method_args=method_args,
            boxes=self._box_references(boxes),
        )

        logger.info("Calling %s on app %s", method_name, self.app_id)
        try:
            response: AtomicTransactionResponse = composer.execute(self.algod, WAIT_ROUNDS)
        except SUBMIT_ERRORS as e:
            logger.error("%s failed: %s", method_name, e)
            raise TransactionFailedError(f"{method_name} failed: {e}") from e

        result = response.abi_results[0] if response.abi_results else None
        tx_id = result.tx_id if result is not None else response.tx_ids[-1]
        logger.info("%s confirmed in round %s (%s)", method_name, response.confirmed_round, tx_id)
        return TransactionResult(
            tx_id=tx_id,
            confirmed_round=response.confirmed_round,
            return_value=result.return_value if result is not None else None,
        )

    def create_campaign(
        self,
        title: str,
        description: str,
        target_amount,
        campaign_type: str,
        image_hash: str,
        document_hashes: list[str],
        milestone_titles: list[str],
        milestone_descriptions: list[str],
        milestone_amounts: list,
    ) -> int:
        """
        Register a campaign. Amounts are given in ALGO.

        The call is grouped with a payment covering the minimum balance of
        the campaign's boxes. The campaign ID is read from the global
        counter before submitting; if another registration takes that ID
        first, the call is retried with the new count.

        Args:
            title: Campaign title
            description: Campaign description
            target_amount: Target in ALGO
            campaign_type: MEDICAL, NGO, EDUCATION, ...
            image_hash: IPFS hash of the cover image
            document_hashes: IPFS hashes of supporting documents
            milestone_titles: One title per milestone
            milestone_descriptions: One description per milestone
            milestone_amounts: One amount (ALGO) per milestone

        Returns:
            The new campaign ID
        """
        count = len(milestone_titles)
        if count > abi.MAX_MILESTONES:
            raise FundChainError(f"At most {abi.MAX_MILESTONES} milestones are supported")

        target = algo_to_microalgo(target_amount)
        amounts = [algo_to_microalgo(amount) for amount in milestone_amounts]

        campaign_id = self.get_campaign_count()
        for attempt in range(1, CREATE_ATTEMPTS + 1):
            storage = abi.campaign_storage_cost(
                campaign_id,
                title,
                description,
                campaign_type,
                image_hash,
                document_hashes,
                milestone_titles,
                milestone_descriptions,
                amounts,
            )
            boxes = [
                abi.campaign_box(campaign_id),
                abi.ledger_box(campaign_id),
                abi.documents_box(campaign_id),
            ] + [abi.milestone_box(campaign_id, index) for index in range(count)]

            try:
                result = self._call(
                    "create_campaign",
                    [
                        title,
                        description,
                        target,
                        campaign_type,
                        image_hash,
                        list(document_hashes),
                        list(milestone_titles),
                        list(milestone_descriptions),
                        amounts,
                        self._payment(storage),
                    ],
                    boxes,
                )
                break
            except TransactionFailedError:
                current = self.get_campaign_count()
                if current == campaign_id or attempt == CREATE_ATTEMPTS:
                    raise
                logger.warning(
                    "Campaign ID %s was taken, retrying as %s (attempt %s)",
                    campaign_id,
                    current,
                    attempt + 1,
                )
                campaign_id = current

        logger.info("Created campaign %s: %s", result.return_value, title)
        return result.return_value

    def verify_campaign(self, campaign_id: int) -> TransactionResult:
        return self._call(
            "verify_campaign",
            [campaign_id],
            [abi.admin_box(self._require_sender().address), abi.ledger_box(campaign_id)],
        )

    def donate(self, campaign_id: int, amount) -> TransactionResult:
        """
        Donate ALGO to a verified campaign.

        A donor's first donation to a campaign also pays for their donor
        box (abi.DONATION_BOX_COST); the full `amount` is credited.

        Args:
            campaign_id: ID of the campaign
            amount: Donation in ALGO
        """
        sender = self._require_sender()
        total = algo_to_microalgo(amount)
        if self.get_donation(campaign_id, sender.address) == 0:
            total += abi.DONATION_BOX_COST
        return self._call(
            "donate",
            [campaign_id, self._payment(total)],
            [abi.ledger_box(campaign_id), abi.donation_box(campaign_id, sender.address)],
        )

    def complete_milestone(self, campaign_id: int, milestone_id: int) -> TransactionResult:
        self._require_owner(campaign_id, "complete milestones")
        return self._call(
            "complete_milestone",
            [campaign_id, milestone_id],
            [
                abi.campaign_box(campaign_id),
                abi.ledger_box(campaign_id),
                abi.milestone_box(campaign_id, milestone_id),
            ],
        )

    def withdraw(self, campaign_id: int, amount) -> TransactionResult:
        """
        Withdraw unlocked funds to the campaign owner.

        Args:
            campaign_id: ID of the campaign
            amount: Amount in ALGO
        """
        self._require_owner(campaign_id, "withdraw funds")
        return self._call(
            "withdraw",
            [campaign_id, algo_to_microalgo(amount)],
            [abi.campaign_box(campaign_id), abi.ledger_box(campaign_id)],
            inner_transactions=1,
        )

    def add_admin(self, address: str) -> TransactionResult:
        """Add an admin, funding the admin box if the account has none yet."""
        storage = 0
        if self._read_box(abi.admin_box(address)) is None:
            storage = abi.ADMIN_BOX_COST
        return self._call("add_admin", [address, self._payment(storage)], [abi.admin_box(address)])

    def remove_admin(self, address: str) -> TransactionResult:
        return self._call("remove_admin", [address], [abi.admin_box(address)])
