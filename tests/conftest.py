"""
Shared fixtures for FundChain tests.
"""

from collections.abc import Iterator

import pytest
from algopy import Account, UInt64, arc4, gtxn
from algopy_testing import AlgopyTestContext, algopy_testing_context

from contracts.fund_factory.contract import FundFactory
from fundchain import abi


TITLE = "Medical Campaign"
DESCRIPTION = "Help fund medical expenses"
CAMPAIGN_TYPE = "MEDICAL"
IMAGE_HASH = "QmImageHash"
DOCUMENT_HASHES = ("QmDocHash1", "QmDocHash2")
MILESTONE_TITLES = ("Initial Tests", "Treatment")
MILESTONE_DESCRIPTIONS = ("Initial diagnosis", "Complete treatment")

# 1 ALGO target split into 0.4 + 0.6 ALGO milestones
TARGET_AMOUNT = 1_000_000
MILESTONE_AMOUNTS = (400_000, 600_000)


def strings(*values: str) -> arc4.DynamicArray[arc4.String]:
    return arc4.DynamicArray[arc4.String](*(arc4.String(v) for v in values))


def amounts(*values: int) -> arc4.DynamicArray[arc4.UInt64]:
    return arc4.DynamicArray[arc4.UInt64](*(arc4.UInt64(v) for v in values))


def as_sender(context: AlgopyTestContext, sender: Account):
    """Run the next app call with a different transaction sender."""
    return context.txn.create_group(active_txn_overrides={"sender": sender})


def app_payment(
    context: AlgopyTestContext,
    factory: FundFactory,
    sender: Account,
    amount: int,
    receiver: Account | None = None,
) -> gtxn.PaymentTransaction:
    """A payment from `sender` to the application (or `receiver`)."""
    if receiver is None:
        receiver = context.ledger.get_app(factory).address
    return context.any.txn.payment(sender=sender, receiver=receiver, amount=UInt64(amount))


def storage_cost(milestone_amounts: tuple[int, ...] = MILESTONE_AMOUNTS) -> int:
    """Box storage a registration of the standard campaign must fund."""
    count = len(milestone_amounts)
    # Box names have a fixed length, so any campaign ID gives the same cost
    return abi.campaign_storage_cost(
        0,
        TITLE,
        DESCRIPTION,
        CAMPAIGN_TYPE,
        IMAGE_HASH,
        list(DOCUMENT_HASHES),
        list(MILESTONE_TITLES[:count]),
        list(MILESTONE_DESCRIPTIONS[:count]),
        list(milestone_amounts),
    )


def register_campaign(
    context: AlgopyTestContext,
    factory: FundFactory,
    owner: Account,
    target_amount: int = TARGET_AMOUNT,
    milestone_amounts: tuple[int, ...] = MILESTONE_AMOUNTS,
    payment_amount: int | None = None,
    receiver: Account | None = None,
) -> arc4.UInt64:
    """Create the standard test campaign as `owner`, paying its box storage."""
    count = len(milestone_amounts)
    if payment_amount is None:
        payment_amount = storage_cost(milestone_amounts)
    payment = app_payment(context, factory, owner, payment_amount, receiver)
    with as_sender(context, owner):
        campaign_id = factory.create_campaign(
            arc4.String(TITLE),
            arc4.String(DESCRIPTION),
            arc4.UInt64(target_amount),
            arc4.String(CAMPAIGN_TYPE),
            arc4.String(IMAGE_HASH),
            strings(*DOCUMENT_HASHES),
            strings(*MILESTONE_TITLES[:count]),
            strings(*MILESTONE_DESCRIPTIONS[:count]),
            amounts(*milestone_amounts),
            payment,
        )
    return campaign_id


def donate(
    context: AlgopyTestContext,
    factory: FundFactory,
    campaign_id: arc4.UInt64,
    donor: Account,
    amount: int,
) -> None:
    """
    Donate `amount` from `donor`.
    A first-time donor also pays for their donor box.
    """
    if factory.get_donation(campaign_id, arc4.Address(donor)).native == 0:
        amount += abi.DONATION_BOX_COST
    factory.donate(campaign_id, app_payment(context, factory, donor, amount))


@pytest.fixture
def context() -> Iterator[AlgopyTestContext]:
    """Create a fresh testing context for each test."""
    with algopy_testing_context() as ctx:
        yield ctx


@pytest.fixture
def factory(context: AlgopyTestContext) -> FundFactory:
    """A created factory; context.default_sender is the super admin."""
    contract = FundFactory()
    contract.create()
    return contract


@pytest.fixture
def admin(context: AlgopyTestContext, factory: FundFactory) -> Account:
    account = context.any.account()
    payment = app_payment(context, factory, context.default_sender, abi.ADMIN_BOX_COST)
    factory.add_admin(arc4.Address(account), payment)
    return account


@pytest.fixture
def owner(context: AlgopyTestContext) -> Account:
    return context.any.account()


@pytest.fixture
def donor(context: AlgopyTestContext) -> Account:
    return context.any.account()


@pytest.fixture
def campaign_id(
    context: AlgopyTestContext,
    factory: FundFactory,
    admin: Account,
    owner: Account,
) -> arc4.UInt64:
    """The standard campaign, registered by `owner` and verified by `admin`."""
    campaign_id = register_campaign(context, factory, owner)
    with as_sender(context, admin):
        factory.verify_campaign(campaign_id)
    return campaign_id
