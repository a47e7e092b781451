"""
Domain enums for WasteNot application.
Contains all enumeration types used across the domain models.
"""

import enum


class StorageLocation(str, enum.Enum):
    """Where a food item is kept"""

    FRIDGE = "Fridge"
    FREEZER = "Freezer"
    PANTRY = "Pantry"


class ItemCondition(str, enum.Enum):
    """Condition reported by the user when logging an item"""

    FRESHLY_BOUGHT = "Freshly bought"
    NEAR_EXPIRY = "Near expiry"
    ALREADY_OPENED = "Already opened"


class ItemStatus(str, enum.Enum):
    """Food item lifecycle status"""

    ACTIVE = "active"
    CONSUMED = "consumed"
    WASTED = "wasted"
    DELETED = "deleted"


REMOVED_STATUSES = (ItemStatus.CONSUMED, ItemStatus.WASTED, ItemStatus.DELETED)


class AlertType(str, enum.Enum):
    """Kind of alert raised for a food item"""

    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    LOW_FRESHNESS = "low_freshness"


class FoodCategory(str, enum.Enum):
    """Coarse food category derived from the item name"""

    DAIRY = "dairy"
    MEAT = "meat"
    PRODUCE = "produce"
    BAKED = "baked"
    PANTRY = "pantry"
    OTHER = "other"


class DecayPattern(str, enum.Enum):
    """Shape of freshness decline over the remaining shelf life"""

    STANDARD = "standard"
    EXPONENTIAL = "exponential"
    SLOW = "slow"
