"""
FundFactory Smart Contract for FundChain

Milestone-gated crowdfunding. The factory registers campaigns, keeps the
admin set that verifies them, and holds every campaign's donations in
escrow until the owner completes milestones.

Features:
- Super admin (deployer) manages the admin set
- Anyone can register a campaign with milestones and IPFS document hashes
- Admins verify campaigns before they accept donations
- Campaigns close automatically once the target is reached
- Owners withdraw up to the sum of their completed milestones

Algorand Primitives Used:
- AVM Application (smart contract)
- Escrow pattern (contract holds donations)
- Grouped payment transactions for donations
- Inner Transactions for withdrawals
- Boxes (campaigns, ledgers, milestones, documents, donors, admins)
"""

from algopy import (
    ARC4Contract,
    Account,
    Bytes,
    Global,
    GlobalState,
    Txn,
    UInt64,
    arc4,
    gtxn,
    itxn,
    op,
    subroutine,
    BoxMap,
    urange,
)

from .ledger import (
    mark_verified,
    new_ledger,
    record_donation,
    record_milestone,
    record_withdrawal,
    withdrawable_amount,
)
from .structs import (
    AdminUpdated,
    CampaignCreated,
    CampaignDetails,
    CampaignInfo,
    CampaignLedger,
    CampaignVerified,
    DonationReceived,
    FundsWithdrawn,
    Milestone,
    MilestoneCompleted,
)


# Box minimum balance: 2500 + 400 * (name length + value length) microALGOs
BOX_FLAT_MIN_BALANCE = UInt64(2_500)
BOX_BYTE_MIN_BALANCE = UInt64(400)

# Box name lengths: prefix + itob(campaign_id) [+ itob(index) | address]
CAMPAIGN_KEY_LENGTH = UInt64(13)
LEDGER_KEY_LENGTH = UInt64(15)
DOCUMENTS_KEY_LENGTH = UInt64(13)
MILESTONE_KEY_LENGTH = UInt64(21)
DONATION_KEY_LENGTH = UInt64(46)
ADMIN_KEY_LENGTH = UInt64(38)


@subroutine
def box_cost(name_length: UInt64, value_length: UInt64) -> UInt64:
    return BOX_FLAT_MIN_BALANCE + BOX_BYTE_MIN_BALANCE * (name_length + value_length)


@subroutine
def milestone_key(campaign_id: UInt64, index: UInt64) -> Bytes:
    return op.itob(campaign_id) + op.itob(index)


@subroutine
def donation_key(campaign_id: UInt64, donor: Account) -> Bytes:
    return op.itob(campaign_id) + donor.bytes


class FundFactory(ARC4Contract):
    """
    Campaign factory and escrow ledger.

    State Schema:
    - Global State:
        - admin: Super admin (deployer)
        - campaign_count: Total campaigns registered

    - Boxes:
        - admin_{address}: Admin set membership
        - camp_{id}: CampaignInfo
        - ledger_{id}: CampaignLedger
        - docs_{id}: Document hashes
        - mile_{id}{index}: Milestone
        - donor_{id}{address}: Donor total in microALGOs
    """

    def __init__(self) -> None:
        self.admin = GlobalState(Account)
        self.campaign_count = GlobalState(UInt64)

        self.admins = BoxMap(Account, UInt64, key_prefix=b"admin_")
        self.campaigns = BoxMap(UInt64, CampaignInfo, key_prefix=b"camp_")
        self.ledgers = BoxMap(UInt64, CampaignLedger, key_prefix=b"ledger_")
        self.documents = BoxMap(UInt64, arc4.DynamicArray[arc4.String], key_prefix=b"docs_")
        self.milestones = BoxMap(Bytes, Milestone, key_prefix=b"mile_")
        self.donations = BoxMap(Bytes, UInt64, key_prefix=b"donor_")

    @arc4.abimethod(create="require")
    def create(self) -> None:
        """
        Create the factory. The creator becomes the super admin.
        """
        self.admin.value = Txn.sender
        self.campaign_count.value = UInt64(0)

    # ------------------------------------------------------------------
    # Admin set
    # ------------------------------------------------------------------

    @arc4.abimethod
    def add_admin(self, account: arc4.Address, payment: gtxn.PaymentTransaction) -> None:
        """
        Grant verification rights to an account.
        Only the super admin can add admins. A new admin box must be
        funded by the grouped payment.

        Args:
            account: Address to add
            payment: Payment covering the admin box minimum balance
        """
        assert Txn.sender == self.admin.value, "Only super admin can manage admins"
        assert payment.receiver == Global.current_application_address, "Payment must go to the application"
        if account.native not in self.admins:
            assert payment.amount >= box_cost(ADMIN_KEY_LENGTH, UInt64(8)), "Payment does not cover box storage"

        self.admins[account.native] = UInt64(1)
        arc4.emit(AdminUpdated(account, arc4.Bool(True)))

    @arc4.abimethod
    def remove_admin(self, account: arc4.Address) -> None:
        """
        Revoke verification rights from an account.
        The super admin itself cannot be removed.

        Args:
            account: Address to remove
        """
        assert Txn.sender == self.admin.value, "Only super admin can manage admins"
        assert account.native != self.admin.value, "Cannot remove super admin"
        assert account.native in self.admins, "Account is not an admin"

        del self.admins[account.native]
        arc4.emit(AdminUpdated(account, arc4.Bool(False)))

    @arc4.abimethod(readonly=True)
    def is_admin(self, account: arc4.Address) -> arc4.Bool:
        return arc4.Bool(self._is_admin(account.native))

    @subroutine
    def _is_admin(self, account: Account) -> bool:
        return account == self.admin.value or account in self.admins

    # ------------------------------------------------------------------
    # Campaign registry
    # ------------------------------------------------------------------

    @arc4.abimethod
    def create_campaign(
        self,
        title: arc4.String,
        description: arc4.String,
        target_amount: arc4.UInt64,
        campaign_type: arc4.String,
        image_hash: arc4.String,
        document_hashes: arc4.DynamicArray[arc4.String],
        milestone_titles: arc4.DynamicArray[arc4.String],
        milestone_descriptions: arc4.DynamicArray[arc4.String],
        milestone_amounts: arc4.DynamicArray[arc4.UInt64],
        payment: gtxn.PaymentTransaction,
    ) -> arc4.UInt64:
        """
        Register a new campaign. The caller becomes its owner.
        The grouped payment funds the minimum balance of the new boxes.

        Args:
            title: Campaign title
            description: Campaign description
            target_amount: Funding target in microALGOs
            campaign_type: MEDICAL, NGO, EDUCATION, ...
            image_hash: IPFS hash of the cover image
            document_hashes: IPFS hashes of supporting documents
            milestone_titles: One title per milestone
            milestone_descriptions: One description per milestone
            milestone_amounts: One amount (microALGOs) per milestone
            payment: Payment to the application covering box storage

        Returns:
            Campaign ID
        """
        assert target_amount.native > 0, "Target amount must be positive"
        assert title.native.bytes.length > 0, "Title is required"

        count = milestone_titles.length
        assert count > 0, "At least one milestone is required"
        assert milestone_descriptions.length == count, "Milestone data length mismatch"
        assert milestone_amounts.length == count, "Milestone data length mismatch"

        campaign_id = self.campaign_count.value

        total = UInt64(0)
        storage = UInt64(0)
        for index in urange(count):
            amount = milestone_amounts[index].native
            assert amount > 0, "Milestone amount must be positive"
            total += amount

            milestone = Milestone(
                title=milestone_titles[index],
                description=milestone_descriptions[index],
                amount=milestone_amounts[index],
                is_completed=arc4.Bool(False),
            )
            storage += box_cost(MILESTONE_KEY_LENGTH, milestone.bytes.length)
        assert total <= target_amount.native, "Milestone amounts exceed target"

        owner = arc4.Address(Txn.sender)
        info = CampaignInfo(
            owner=owner,
            title=title,
            description=description,
            campaign_type=campaign_type,
            image_hash=image_hash,
        )
        ledger = new_ledger(target_amount.native, count)
        storage += box_cost(CAMPAIGN_KEY_LENGTH, info.bytes.length)
        storage += box_cost(LEDGER_KEY_LENGTH, ledger.bytes.length)
        storage += box_cost(DOCUMENTS_KEY_LENGTH, document_hashes.bytes.length)

        assert payment.receiver == Global.current_application_address, "Payment must go to the application"
        assert payment.amount >= storage, "Payment does not cover box storage"

        for index in urange(count):
            self.milestones[milestone_key(campaign_id, index)] = Milestone(
                title=milestone_titles[index],
                description=milestone_descriptions[index],
                amount=milestone_amounts[index],
                is_completed=arc4.Bool(False),
            )
        self.campaigns[campaign_id] = info.copy()
        self.ledgers[campaign_id] = ledger.copy()
        self.documents[campaign_id] = document_hashes.copy()

        self.campaign_count.value = campaign_id + 1

        arc4.emit(CampaignCreated(arc4.UInt64(campaign_id), owner, title, target_amount))
        return arc4.UInt64(campaign_id)

    @arc4.abimethod
    def verify_campaign(self, campaign_id: arc4.UInt64) -> None:
        """
        Verify an OPEN campaign so it can accept donations.
        Only admins can verify.

        Args:
            campaign_id: ID of the campaign
        """
        assert self._is_admin(Txn.sender), "Caller is not an admin"

        ledger = self._load_ledger(campaign_id.native)
        self.ledgers[campaign_id.native] = mark_verified(ledger)

        arc4.emit(CampaignVerified(campaign_id, arc4.Address(Txn.sender), arc4.Bool(True)))

    @arc4.abimethod(readonly=True)
    def get_all_campaigns(self) -> arc4.DynamicArray[arc4.UInt64]:
        ids = arc4.DynamicArray[arc4.UInt64]()
        for campaign_id in urange(self.campaign_count.value):
            ids.append(arc4.UInt64(campaign_id))
        return ids

    @arc4.abimethod(readonly=True)
    def get_campaign_count(self) -> arc4.UInt64:
        return arc4.UInt64(self.campaign_count.value)

    @arc4.abimethod(readonly=True)
    def is_campaign(self, campaign_id: arc4.UInt64) -> arc4.Bool:
        return arc4.Bool(campaign_id.native in self.campaigns)

    # ------------------------------------------------------------------
    # Campaign ledger
    # ------------------------------------------------------------------

    @arc4.abimethod
    def donate(self, campaign_id: arc4.UInt64, payment: gtxn.PaymentTransaction) -> None:
        """
        Donate to a verified campaign.
        Must be grouped with a payment to the application address;
        the payment sender is recorded as the donor. A donor's first
        payment also funds their donor box; that part is not credited.

        Args:
            campaign_id: ID of the campaign
            payment: Donation payment
        """
        assert payment.receiver == Global.current_application_address, "Payment must go to the application"

        ledger = self._load_ledger(campaign_id.native)

        key = donation_key(campaign_id.native, payment.sender)
        previous = self.donations.get(key, default=UInt64(0))

        record_cost = UInt64(0)
        if previous == 0:
            record_cost = box_cost(DONATION_KEY_LENGTH, UInt64(8))
        assert payment.amount >= record_cost, "Donation does not cover donor record"
        amount = payment.amount - record_cost

        ledger = record_donation(ledger, amount, previous == 0)
        self.ledgers[campaign_id.native] = ledger.copy()
        self.donations[key] = previous + amount

        arc4.emit(
            DonationReceived(
                campaign_id,
                arc4.Address(payment.sender),
                arc4.UInt64(amount),
                ledger.amount_raised,
            )
        )

    @arc4.abimethod
    def complete_milestone(self, campaign_id: arc4.UInt64, milestone_id: arc4.UInt64) -> None:
        """
        Mark a milestone as complete, unlocking its amount for withdrawal.
        Only the campaign owner can complete milestones.

        Args:
            campaign_id: ID of the campaign
            milestone_id: Index of the milestone
        """
        self._only_owner(campaign_id.native)

        ledger = self._load_ledger(campaign_id.native)
        assert milestone_id.native < ledger.milestone_count.native, "Milestone does not exist"

        key = milestone_key(campaign_id.native, milestone_id.native)
        milestone = self.milestones[key].copy()
        assert not milestone.is_completed.native, "Milestone already completed"

        milestone.is_completed = arc4.Bool(True)
        self.milestones[key] = milestone.copy()
        self.ledgers[campaign_id.native] = record_milestone(ledger, milestone.amount.native)

        arc4.emit(MilestoneCompleted(campaign_id, milestone_id, milestone.amount))

    @arc4.abimethod
    def withdraw(self, campaign_id: arc4.UInt64, amount: arc4.UInt64) -> None:
        """
        Withdraw escrowed funds to the campaign owner.
        The caller must cover the inner transaction fee.

        Args:
            campaign_id: ID of the campaign
            amount: Amount to withdraw in microALGOs
        """
        self._only_owner(campaign_id.native)

        ledger = self._load_ledger(campaign_id.native)
        self.ledgers[campaign_id.native] = record_withdrawal(ledger, amount.native)

        itxn.Payment(
            receiver=Txn.sender,
            amount=amount.native,
            fee=0,
        ).submit()

        arc4.emit(FundsWithdrawn(campaign_id, arc4.Address(Txn.sender), amount))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @arc4.abimethod(readonly=True)
    def get_campaign_details(self, campaign_id: arc4.UInt64) -> CampaignDetails:
        """
        Get campaign summary.

        Args:
            campaign_id: ID of the campaign

        Returns:
            (title, description, target, raised, donors, status, created_at, updated_at)
        """
        info = self._load_info(campaign_id.native)
        ledger = self._load_ledger(campaign_id.native)
        return CampaignDetails(
            title=info.title,
            description=info.description,
            target_amount=ledger.target_amount,
            amount_raised=ledger.amount_raised,
            donors_count=ledger.donors_count,
            status=ledger.status,
            created_at=ledger.created_at,
            updated_at=ledger.updated_at,
        )

    @arc4.abimethod(readonly=True)
    def get_campaign_info(self, campaign_id: arc4.UInt64) -> CampaignInfo:
        return self._load_info(campaign_id.native)

    @arc4.abimethod(readonly=True)
    def get_campaign_ledger(self, campaign_id: arc4.UInt64) -> CampaignLedger:
        return self._load_ledger(campaign_id.native)

    @arc4.abimethod(readonly=True)
    def get_milestone_count(self, campaign_id: arc4.UInt64) -> arc4.UInt64:
        return self._load_ledger(campaign_id.native).milestone_count

    @arc4.abimethod(readonly=True)
    def get_milestone_details(self, campaign_id: arc4.UInt64, milestone_id: arc4.UInt64) -> Milestone:
        key = milestone_key(campaign_id.native, milestone_id.native)
        assert key in self.milestones, "Milestone does not exist"
        return self.milestones[key].copy()

    @arc4.abimethod(readonly=True)
    def get_document_hashes(self, campaign_id: arc4.UInt64) -> arc4.DynamicArray[arc4.String]:
        assert campaign_id.native in self.documents, "Campaign does not exist"
        return self.documents[campaign_id.native].copy()

    @arc4.abimethod(readonly=True)
    def get_donation(self, campaign_id: arc4.UInt64, donor: arc4.Address) -> arc4.UInt64:
        """Total donated by an account to a campaign (0 if none)."""
        key = donation_key(campaign_id.native, donor.native)
        return arc4.UInt64(self.donations.get(key, default=UInt64(0)))

    @arc4.abimethod(readonly=True)
    def get_withdrawable_amount(self, campaign_id: arc4.UInt64) -> arc4.UInt64:
        return arc4.UInt64(withdrawable_amount(self._load_ledger(campaign_id.native)))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @subroutine
    def _load_info(self, campaign_id: UInt64) -> CampaignInfo:
        assert campaign_id in self.campaigns, "Campaign does not exist"
        return self.campaigns[campaign_id].copy()

    @subroutine
    def _load_ledger(self, campaign_id: UInt64) -> CampaignLedger:
        assert campaign_id in self.ledgers, "Campaign does not exist"
        return self.ledgers[campaign_id].copy()

    @subroutine
    def _only_owner(self, campaign_id: UInt64) -> None:
        info = self._load_info(campaign_id)
        assert info.owner.native == Txn.sender, "Caller is not the campaign owner"
