"""Shared enumerations and choices used across apps."""

from django.db import models


class ActiveInactive(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class MovementType(models.TextChoices):
    INBOUND = "in", "Incoming"
    OUTBOUND = "out", "Outgoing"


class ResolutionAction(models.TextChoices):
    """Bucket transfers recorded against a line item."""

    SEND_TO_VENDOR = "send_to_vendor", "Sent to vendor"
    RECEIVE_FROM_VENDOR = "receive_from_vendor", "Received from vendor"
    SCRAP = "scrap", "Scrapped"
    SHORT_RECEIVE_BACK = "short_receive_back", "Short received back"


class ReceiveCondition(models.TextChoices):
    REPLACED = "replaced", "Replaced"
    REPAIRED = "repaired", "Repaired"
    AS_IS = "as-is", "Returned as-is"


class ScrapReason(models.TextChoices):
    BEYOND_REPAIR = "beyond-repair", "Beyond repair"
    EXPIRED = "expired", "Expired"
    VENDOR_DECLINED = "vendor-declined", "Vendor declined return"
    OTHER = "other", "Other"


class RejectedStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    IN_PROGRESS = "in_progress", "In progress"
    RESOLVED = "resolved", "Resolved"


class ShortStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PARTIALLY_RECEIVED = "partially_received", "Partially received"
    RECEIVED_BACK = "received_back", "Received back"
