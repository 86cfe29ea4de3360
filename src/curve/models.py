"""Value types produced and consumed by the bonding curve engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CurveReserves:
    """Virtual reserves price the curve; real reserves are what the vaults hold."""

    virtual_base: int
    virtual_quote: int
    real_base: int
    real_quote: int

    @property
    def k(self) -> int:
        return self.virtual_base * self.virtual_quote


@dataclass(frozen=True)
class SwapQuote:
    """Result of pricing a single buy or sell. Never persisted."""

    amount_in: int
    amount_out: int
    protocol_fee: int  # treasury share of total_fee
    creator_fee: int
    total_fee: int
    new_reserves: CurveReserves
    price_before: int
    price_after: int
    price_impact_bps: int
