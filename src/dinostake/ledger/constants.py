# src/dinostake/ledger/constants.py
from __future__ import annotations

"""Economic constants for staking, slots, raffle, referrals and the eDINOSUR sale.

All money and token quantities are Decimal. Never build these from floats.
"""

from decimal import Decimal

# Reward-token precision (1 eDINOSUR = 1e8 units); accrual rounds down to this.
REWARD_DECIMALS: int = 8
REWARD_QUANTUM: Decimal = Decimal(1).scaleb(-REWARD_DECIMALS)

# Time
SECOND_MS: int = 1000
DAY_SECONDS: int = 24 * 60 * 60
DAY_MS: int = DAY_SECONDS * SECOND_MS

# ---- Staking ----

# (tier, base daily eDINOSUR rate) for a brand-new holder; all start unstaked.
SEED_ASSETS = (
    ("Common", Decimal("5000")),
    ("Rare", Decimal("10000")),
    ("Unique", Decimal("15000")),
)

# Highest tier present wins; evaluated in this order.
TIER_MULTIPLIERS = (
    (("Legend",), Decimal("1.50")),
    (("King",), Decimal("1.30")),
    (("Unique",), Decimal("1.15")),
    (("Common", "Rare"), Decimal("1.05")),
)
DEFAULT_MULTIPLIER: Decimal = Decimal("1.00")

# ---- Slots ----

BASE_SLOT_COST: Decimal = Decimal("200000")
SLOT_COST_GROWTH: Decimal = Decimal("1.5")
# Slot counts up to and including this value pay the base cost.
SLOT_COST_FLAT_UNTIL: int = 3
SLOT_BURN_RATE: Decimal = Decimal("0.5")

# ---- Raffle ----

TICKET_PRICE: Decimal = Decimal("50000")
TICKET_BURN_RATE: Decimal = Decimal("0.10")
REEL_COUNT: int = 3
REEL_SYMBOLS = ("DINO", "EGG", "BONE", "VOLCANO", "FERN", "METEOR")

# ---- Referrals ----

REFERRAL_DAILY_RATE: Decimal = Decimal("75000")
REFERRAL_CODE_LEN: int = 8

# ---- eDINOSUR sale ----

TOTAL_SUPPLY: Decimal = Decimal("500000000000")
SALE_ALLOCATION_RATE: Decimal = Decimal("0.01")
SALE_TOTAL_TOKENS: Decimal = TOTAL_SUPPLY * SALE_ALLOCATION_RATE
EPOCH_ALLOCATION_RATE: Decimal = Decimal("0.05")

SALE_START_OFFSET_DAYS: int = 45
EPOCH_DURATION_DAYS: int = 7
EPOCH_DURATION_MS: int = EPOCH_DURATION_DAYS * DAY_MS

SALE_BASE_PRICE_USD: Decimal = Decimal("0.00005")
SALE_PRICE_GROWTH: Decimal = Decimal("1.10")

WALLET_CAP_USD: Decimal = Decimal("1000")
EPOCH_CAP_USD: Decimal = Decimal("250")

# ---- Document keys ----

GLOBAL_BURN_STATS_KEY: str = "public/burn_stats/global"

DOC_STAKING: str = "staking"
DOC_RAFFLE: str = "raffle"
DOC_SALE: str = "sale"
DOC_AFFILIATE: str = "affiliate"
