"""
Exceptions raised by the FundChain client.
"""


class FundChainError(Exception):
    """Base class for FundChain client errors."""


class ConfigurationError(FundChainError):
    """Missing or invalid configuration value."""


class CampaignNotFoundError(FundChainError):
    def __init__(self, campaign_id: int):
        super().__init__(f"Campaign {campaign_id} does not exist")
        self.campaign_id = campaign_id


class NotCampaignOwnerError(FundChainError):
    """The signing account does not own the campaign."""

    def __init__(self, action: str, campaign_id: int | None = None):
        super().__init__(f"Only the campaign owner can {action}")
        self.action = action
        self.campaign_id = campaign_id


class TransactionFailedError(FundChainError):
    """The node rejected a transaction group."""

    def __init__(self, message: str, tx_ids: list[str] | None = None):
        super().__init__(message)
        self.tx_ids = tx_ids or []
