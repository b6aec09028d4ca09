"""
POS Pricing Engine — Errors
=============================
Error types for the pricing and refund layers.

Over-discount is never an error (it is clamped). Invalid rule
configurations are logged and skipped, not raised.
"""


class PricingError(Exception):
    """Base error for pricing operations."""
    pass


class InvalidPayloadError(PricingError):
    """Wire payload could not be parsed into pricing models."""

    def __init__(self, message: str, field_name: str | None = None):
        self.field_name = field_name
        super().__init__(message)


class CampaignNotFoundError(PricingError):
    """Campaign id is not present in the catalog."""

    def __init__(self, campaign_id: str):
        self.campaign_id = campaign_id
        super().__init__(f"Campaign '{campaign_id}' not found.")


class CampaignInactiveError(PricingError):
    """Campaign exists but is switched off or outside its validity window."""

    def __init__(self, campaign_id: str):
        self.campaign_id = campaign_id
        super().__init__(f"Campaign '{campaign_id}' is not active.")
