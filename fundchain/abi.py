"""
FundFactory ABI

Method signatures, box keys and box value decoding for the FundFactory
application. Box layouts mirror contracts/fund_factory/structs.py.
"""

from dataclasses import dataclass

from algosdk import abi, encoding

# Campaign status, indexed by the on-chain status byte
STATUS_NAMES = ("OPEN", "VERIFIED", "CLOSED")
STATUS_OPEN = 0
STATUS_VERIFIED = 1
STATUS_CLOSED = 2

# Global state keys
ADMIN_KEY = b"admin"
CAMPAIGN_COUNT_KEY = b"campaign_count"

# Box key prefixes
ADMIN_PREFIX = b"admin_"
CAMPAIGN_PREFIX = b"camp_"
LEDGER_PREFIX = b"ledger_"
DOCUMENTS_PREFIX = b"docs_"
MILESTONE_PREFIX = b"mile_"
DONATION_PREFIX = b"donor_"

# An app call may reference at most 8 boxes; registration needs 3 + one per milestone
MAX_BOX_REFERENCES = 8
MAX_MILESTONES = MAX_BOX_REFERENCES - 3

# Box minimum balance: 2500 + 400 * (name length + value length) microALGOs
BOX_FLAT_MIN_BALANCE = 2_500
BOX_BYTE_MIN_BALANCE = 400

METHOD_SIGNATURES = {
    "create": "create()void",
    "add_admin": "add_admin(address,pay)void",
    "remove_admin": "remove_admin(address)void",
    "is_admin": "is_admin(address)bool",
    "create_campaign": (
        "create_campaign(string,string,uint64,string,string,string[],string[],string[],uint64[],pay)uint64"
    ),
    "verify_campaign": "verify_campaign(uint64)void",
    "get_all_campaigns": "get_all_campaigns()uint64[]",
    "get_campaign_count": "get_campaign_count()uint64",
    "is_campaign": "is_campaign(uint64)bool",
    "donate": "donate(uint64,pay)void",
    "complete_milestone": "complete_milestone(uint64,uint64)void",
    "withdraw": "withdraw(uint64,uint64)void",
    "get_campaign_details": (
        "get_campaign_details(uint64)(string,string,uint64,uint64,uint64,uint8,uint64,uint64)"
    ),
    "get_campaign_info": "get_campaign_info(uint64)(address,string,string,string,string)",
    "get_campaign_ledger": (
        "get_campaign_ledger(uint64)(uint64,uint64,uint64,uint64,uint64,uint64,uint8,uint64,uint64)"
    ),
    "get_milestone_count": "get_milestone_count(uint64)uint64",
    "get_milestone_details": "get_milestone_details(uint64,uint64)(string,string,uint64,bool)",
    "get_document_hashes": "get_document_hashes(uint64)string[]",
    "get_donation": "get_donation(uint64,address)uint64",
    "get_withdrawable_amount": "get_withdrawable_amount(uint64)uint64",
}

CAMPAIGN_INFO_TYPE = abi.ABIType.from_string("(address,string,string,string,string)")
CAMPAIGN_LEDGER_TYPE = abi.ABIType.from_string(
    "(uint64,uint64,uint64,uint64,uint64,uint64,uint8,uint64,uint64)"
)
MILESTONE_TYPE = abi.ABIType.from_string("(string,string,uint64,bool)")
DOCUMENTS_TYPE = abi.ABIType.from_string("string[]")
UINT64_TYPE = abi.ABIType.from_string("uint64")


def method(name: str) -> abi.Method:
    return abi.Method.from_signature(METHOD_SIGNATURES[name])


def selector(name: str) -> bytes:
    """4-byte ARC-4 method selector, used as the first app arg."""
    return method(name).get_selector()


def contract_methods() -> list[abi.Method]:
    return [method(name) for name in METHOD_SIGNATURES]


# ----------------------------------------------------------------------
# Box keys
# ----------------------------------------------------------------------

def _itob(value: int) -> bytes:
    return int(value).to_bytes(8, "big")


def admin_box(address: str) -> bytes:
    return ADMIN_PREFIX + encoding.decode_address(address)


def campaign_box(campaign_id: int) -> bytes:
    return CAMPAIGN_PREFIX + _itob(campaign_id)


def ledger_box(campaign_id: int) -> bytes:
    return LEDGER_PREFIX + _itob(campaign_id)


def documents_box(campaign_id: int) -> bytes:
    return DOCUMENTS_PREFIX + _itob(campaign_id)


def milestone_box(campaign_id: int, index: int) -> bytes:
    return MILESTONE_PREFIX + _itob(campaign_id) + _itob(index)


def donation_box(campaign_id: int, donor: str) -> bytes:
    return DONATION_PREFIX + _itob(campaign_id) + encoding.decode_address(donor)


# ----------------------------------------------------------------------
# Box values
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class CampaignInfo:
    owner: str
    title: str
    description: str
    campaign_type: str
    image_hash: str


@dataclass(frozen=True)
class CampaignLedger:
    target_amount: int
    amount_raised: int
    amount_withdrawn: int
    completed_amount: int
    donors_count: int
    milestone_count: int
    status: int
    created_at: int
    updated_at: int

    @property
    def status_name(self) -> str:
        if self.status < len(STATUS_NAMES):
            return STATUS_NAMES[self.status]
        return "UNKNOWN"

    @property
    def withdrawable_amount(self) -> int:
        return min(self.completed_amount, self.amount_raised) - self.amount_withdrawn


@dataclass(frozen=True)
class Milestone:
    title: str
    description: str
    amount: int
    is_completed: bool


def decode_campaign_info(value: bytes) -> CampaignInfo:
    return CampaignInfo(*CAMPAIGN_INFO_TYPE.decode(value))


def decode_campaign_ledger(value: bytes) -> CampaignLedger:
    return CampaignLedger(*CAMPAIGN_LEDGER_TYPE.decode(value))


def decode_milestone(value: bytes) -> Milestone:
    return Milestone(*MILESTONE_TYPE.decode(value))


def decode_documents(value: bytes) -> list[str]:
    return list(DOCUMENTS_TYPE.decode(value))


def decode_uint64(value: bytes) -> int:
    return UINT64_TYPE.decode(value)


# ----------------------------------------------------------------------
# Box storage cost
# ----------------------------------------------------------------------

def box_cost(name: bytes, value_length: int) -> int:
    """Minimum balance the application must hold for one box."""
    return BOX_FLAT_MIN_BALANCE + BOX_BYTE_MIN_BALANCE * (len(name) + value_length)


# Donor and admin boxes hold a single uint64
DONATION_BOX_COST = box_cost(DONATION_PREFIX + bytes(8) + bytes(32), 8)
ADMIN_BOX_COST = box_cost(ADMIN_PREFIX + bytes(32), 8)


def campaign_storage_cost(
    campaign_id: int,
    title: str,
    description: str,
    campaign_type: str,
    image_hash: str,
    document_hashes: list[str],
    milestone_titles: list[str],
    milestone_descriptions: list[str],
    milestone_amounts: list[int],
) -> int:
    """
    Minimum balance needed for the boxes a campaign registration creates.

    Returns:
        Amount in microALGOs the grouped create_campaign payment must cover
    """
    # The owner is a fixed 32 bytes, so any address gives the same size
    info = CAMPAIGN_INFO_TYPE.encode(
        [encoding.encode_address(bytes(32)), title, description, campaign_type, image_hash]
    )
    cost = box_cost(campaign_box(campaign_id), len(info))
    cost += box_cost(ledger_box(campaign_id), CAMPAIGN_LEDGER_TYPE.byte_len())
    cost += box_cost(documents_box(campaign_id), len(DOCUMENTS_TYPE.encode(list(document_hashes))))
    milestones = zip(milestone_titles, milestone_descriptions, milestone_amounts)
    for index, (milestone_title, milestone_description, amount) in enumerate(milestones):
        value = MILESTONE_TYPE.encode([milestone_title, milestone_description, amount, False])
        cost += box_cost(milestone_box(campaign_id, index), len(value))
    return cost
