import enum


class ArticleCategory(str, enum.Enum):
    serialized = "SERIALIZED"
    standard = "STANDARD"
    consumable = "CONSUMABLE"

    @classmethod
    def parse(cls, value: "str | ArticleCategory") -> "ArticleCategory":
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper()
        return cls(LEGACY_CATEGORIES.get(key, key))


# old tier names still found in imported data
LEGACY_CATEGORIES = {
    "HIGH_TIER": "SERIALIZED",
    "MID_TIER": "STANDARD",
    "LOW_TIER": "CONSUMABLE",
}


class MovementType(str, enum.Enum):
    incoming = "IN"
    outgoing = "OUT"
    adjustment = "ADJUSTMENT"


class SerialNumberStatus(str, enum.Enum):
    in_stock = "IN_STOCK"
    reserved = "RESERVED"
    deployed = "DEPLOYED"
    defective = "DEFECTIVE"
    returned = "RETURNED"
    disposed = "DISPOSED"


class OrderStatus(str, enum.Enum):
    new = "NEW"
    in_commission = "IN_COMMISSION"
    in_setup = "IN_SETUP"
    ready_to_ship = "READY_TO_SHIP"
    completed = "COMPLETED"
    cancelled = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.completed, OrderStatus.cancelled)

    @classmethod
    def parse(cls, value: "str | OrderStatus") -> "OrderStatus":
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper()
        return cls(LEGACY_ORDER_STATUSES.get(key, key))


LEGACY_ORDER_STATUSES = {
    "IN_PROGRESS": "IN_COMMISSION",
    "READY": "READY_TO_SHIP",
    "SHIPPED": "COMPLETED",
}


class DeliveryMethod(str, enum.Enum):
    shipping = "SHIPPING"
    pickup = "PICKUP"


class MobilfunkType(str, enum.Enum):
    phone_and_sim = "PHONE_AND_SIM"
    phone_only = "PHONE_ONLY"
    sim_only = "SIM_ONLY"


class SimType(str, enum.Enum):
    sim = "SIM"
    esim = "ESIM"


class MobilfunkTariff(str, enum.Enum):
    standard = "STANDARD"
    unlimited = "UNLIMITED"


class InventoryStatus(str, enum.Enum):
    in_progress = "IN_PROGRESS"
    completed = "COMPLETED"
    cancelled = "CANCELLED"


class StockAvailability(str, enum.Enum):
    green = "green"
    yellow = "yellow"
    red = "red"
