"""Closed enumerations describing a physical mail item."""

from enum import Enum


class Carrier(str, Enum):
    """Carrier that delivered the item to the mailroom."""
    UPS = "ups"
    FEDEX = "fedex"
    USPS = "usps"
    DHL = "dhl"
    AMAZON = "amazon"
    OTHER = "other"


class MailItemType(str, Enum):
    """Kind of item received at the mailroom."""
    PACKAGE = "package"
    LETTER = "letter"
    LARGE_PACKAGE = "large_package"
    ENVELOPE = "envelope"
    PERISHABLE = "perishable"
    SIGNATURE_REQUIRED = "signature_required"
    OTHER = "other"
