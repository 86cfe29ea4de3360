"""Bonding curve constants.

All quote amounts are lamports (1e-9 SOL); all base amounts are raw token
units with 9 decimals.
"""

# Prices are quoted as lamports per base unit scaled by PRICE_SCALE.
PRICE_SCALE = 1_000_000_000

BPS_DENOMINATOR = 10_000

LAMPORTS_PER_SOL = 1_000_000_000

# Minimum trade size on either side (0.000001 SOL)
MIN_TRADE_AMOUNT = 1_000

# Rent-exempt floor the curve vault must keep after any payout
MIN_VAULT_RESERVE = 890_880

U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1

# Initial virtual reserves; they set the starting price of every launch
INITIAL_VIRTUAL_QUOTE = 30_000_000_000  # 30 SOL
INITIAL_VIRTUAL_BASE = 800_000_000_000_000_000  # 800M tokens

# Supply split: 1B tokens, 80% tradable on the curve, 20% held for migration
TOKEN_DECIMALS = 9
TOTAL_SUPPLY = 1_000_000_000_000_000_000
CURVE_ALLOCATION_BPS = 8_000
MIGRATION_RESERVE_BPS = 2_000

# Creator share of the trading fee, carved out of the protocol fee
CREATOR_FEE_BPS = 20
