"""
Core Data Models for Piggery Ledger

These models define the schemas for every record the ledger keeps:
1. Pigs (the herd registry)
2. Feed purchases
3. Sales
4. Miscellaneous expenses
5. The AppData snapshot that bundles all four collections

DESIGN DECISION: Records are frozen. Every change produces a new object,
so a caller that still holds the previous snapshot (e.g. a page being
rendered) never sees it change underneath it.

Field names on the wire are camelCase so backups written by earlier
releases of the app load unchanged.
"""

from datetime import date
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
)
from pydantic.alias_generators import to_camel


def new_record_id() -> str:
    """Generate an opaque client-side record id."""
    return str(uuid4())


# =============================================================================
# ENUMS & PRESETS
# =============================================================================

class PigStatus(str, Enum):
    """
    Lifecycle status of a pig.

    RAISING is the default. SOLD is set by recording a sale and reverted
    by deleting it. DECEASED is only ever set by hand.
    """
    RAISING = "RAISING"
    SOLD = "SOLD"
    DECEASED = "DECEASED"


# Feed type and expense category are free text; these are what the forms offer.
FEED_TYPE_PRESETS = ("Pre-starter", "Starter", "Grower", "Finisher")

MISC_CATEGORY_PRESETS = (
    "Equipment",
    "Utilities",
    "Medicine",
    "Maintenance",
    "Labor",
    "Other",
)


_RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    str_strip_whitespace=True,
)


# =============================================================================
# RECORDS
# =============================================================================

class Pig(BaseModel):
    """A single animal in the registry."""
    model_config = _RECORD_CONFIG

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Opaque unique id"
    )
    tag_id: str = Field(
        ...,
        min_length=1,
        description="Ear tag / label (not enforced unique)"
    )
    date_of_birth: date = Field(
        ...,
        description="Birth date (or arrival date for purchased weaners)"
    )
    initial_weight: float = Field(
        ...,
        ge=0,
        description="Weight at registration in kg"
    )
    purchase_cost: Optional[float] = Field(
        default=None,
        ge=0,
        description="Purchase cost, if the pig was bought in"
    )
    status: PigStatus = Field(
        default=PigStatus.RAISING,
        description="Lifecycle status"
    )
    notes: Optional[str] = None


class FeedRecord(BaseModel):
    """
    A feed purchase.

    pig_id is optional because most feed is bought for the whole pen.
    """
    model_config = _RECORD_CONFIG

    id: str = Field(default_factory=new_record_id, min_length=1)
    pig_id: Optional[str] = Field(
        default=None,
        description="Pig this feed was bought for, if any"
    )
    date_purchased: date
    cost: float = Field(
        ...,
        ge=0,
        description="Amount paid"
    )
    amount_kg: float = Field(
        ...,
        ge=0,
        description="Quantity bought in kg; cost / amount_kg is the unit price"
    )
    feed_type: str = Field(default="Starter", min_length=1)


class SaleRecord(BaseModel):
    """
    A sale of one pig.

    For individual sales total_revenue is sale_weight * sale_price_per_kg.
    For bulk sales it is an equal share of the group total and is set
    independently (see piggery.store.distribute_bulk_sale).
    """
    model_config = _RECORD_CONFIG

    id: str = Field(default_factory=new_record_id, min_length=1)
    pig_id: str = Field(
        ...,
        min_length=1,
        description="Pig that was sold (required)"
    )
    sale_date: date
    sale_weight: float = Field(..., ge=0, description="Weight at sale in kg")
    sale_price_per_kg: float = Field(..., ge=0)
    total_revenue: float = Field(..., ge=0)

    @classmethod
    def individual(
        cls,
        pig_id: str,
        sale_date: date,
        sale_weight: float,
        sale_price_per_kg: float,
    ) -> "SaleRecord":
        """Build a single-pig sale, deriving revenue from weight and price."""
        return cls(
            pig_id=pig_id,
            sale_date=sale_date,
            sale_weight=sale_weight,
            sale_price_per_kg=sale_price_per_kg,
            total_revenue=sale_weight * sale_price_per_kg,
        )


class MiscRecord(BaseModel):
    """Any other expense: equipment, medicine, labor..."""
    model_config = _RECORD_CONFIG

    id: str = Field(default_factory=new_record_id, min_length=1)
    expense_date: date = Field(..., alias="date")
    item: str = Field(..., min_length=1)
    cost: float = Field(..., ge=0)
    category: str = Field(default="Equipment", min_length=1)


# =============================================================================
# SNAPSHOT
# =============================================================================

class AppData(BaseModel):
    """
    The complete set of records.

    CRITICAL: This is the unit of persistence and sync. It is always
    saved, exported, uploaded and restored as one whole.

    Animals are written under "animals"; documents from older releases
    that used "pigs" are accepted on load.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    pigs: tuple[Pig, ...] = Field(
        default=(),
        validation_alias=AliasChoices("animals", "pigs"),
        serialization_alias="animals",
    )
    feed_records: tuple[FeedRecord, ...] = ()
    sale_records: tuple[SaleRecord, ...] = ()
    misc_records: tuple[MiscRecord, ...] = ()

    def get_pig(self, pig_id: str) -> Optional[Pig]:
        """Look up a pig by id."""
        return next((p for p in self.pigs if p.id == pig_id), None)

    def sales_for_pig(self, pig_id: str) -> list[SaleRecord]:
        """All sale records referencing a pig."""
        return [s for s in self.sale_records if s.pig_id == pig_id]

    @property
    def is_empty(self) -> bool:
        return not (
            self.pigs or self.feed_records or self.sale_records or self.misc_records
        )

    def to_document(self) -> dict:
        """Convert to the JSON document shape used on disk and in Drive."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# DERIVED STATS
# =============================================================================

class FarmStats(BaseModel):
    """
    Financial summary derived from a snapshot.

    Every ratio is 0.0 when its denominator is zero - never NaN or inf.
    """
    model_config = ConfigDict(frozen=True)

    total_pigs: int = 0
    raising_count: int = 0
    sold_count: int = 0
    deceased_count: int = 0

    total_feed_cost: float = 0.0
    total_purchase_cost: float = 0.0
    total_misc_cost: float = 0.0
    total_revenue: float = 0.0

    total_expenses: float = 0.0
    net_profit: float = 0.0

    avg_daily_feed_cost: float = 0.0
    sell_through_rate: float = Field(default=0.0, description="Percent of pigs sold")
    profit_margin: float = Field(default=0.0, description="Net profit as percent of revenue")
