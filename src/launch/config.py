"""Protocol-wide configuration and statistics.

One ProtocolConfig is created per deployment via ``initialize()`` and handed to
the Launchpad by reference. Only the admin may change it afterwards; every
change is validated as a whole before anything is applied.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from src.errors import AuthorizationError, ConfigurationError, ErrorKind

if TYPE_CHECKING:
    from config.settings import Settings

MAX_PROTOCOL_FEE_BPS = 1_000  # 10%
MIN_BIN_STEP_BPS = 1
MAX_BIN_STEP_BPS = 500


class ProtocolConfig(BaseModel):
    """Admin-gated protocol parameters plus running totals."""

    admin: str
    fee_authority: str
    protocol_fee_bps: int = Field(default=100, ge=0, le=MAX_PROTOCOL_FEE_BPS)
    graduation_threshold: int = Field(gt=0)
    quote_mint: str
    venue_program_id: str
    default_bin_step_bps: int = Field(default=25, ge=MIN_BIN_STEP_BPS, le=MAX_BIN_STEP_BPS)
    default_base_fee_bps: int = Field(default=30, ge=0)
    launches_paused: bool = False
    trading_paused: bool = False

    # Statistics
    total_launches: int = 0
    total_graduations: int = 0
    total_volume_lamports: int = 0
    total_fees_collected: int = 0

    @classmethod
    def initialize(
        cls,
        admin: str,
        settings: Settings,
        *,
        fee_authority: str | None = None,
    ) -> ProtocolConfig:
        """Build the deployment config from settings. Raises on invalid values."""
        try:
            config = cls(
                admin=admin,
                fee_authority=fee_authority or admin,
                protocol_fee_bps=settings.protocol_fee_bps,
                graduation_threshold=settings.graduation_threshold_lamports,
                quote_mint=settings.quote_mint,
                venue_program_id=settings.venue_program_id,
                default_bin_step_bps=settings.default_bin_step_bps,
                default_base_fee_bps=settings.default_base_fee_bps,
                launches_paused=settings.launches_paused,
                trading_paused=settings.trading_paused,
            )
        except ValidationError as e:
            raise ConfigurationError(ErrorKind.INVALID_CONFIG, str(e)) from e

        logger.info(
            f"[CONFIG] Initialized: admin={admin[:12]} fee={config.protocol_fee_bps}bps "
            f"threshold={config.graduation_threshold / 1e9:.2f} SOL"
        )
        return config

    def _require_admin(self, caller: str) -> None:
        if caller != self.admin:
            raise AuthorizationError(ErrorKind.UNAUTHORIZED, f"{caller[:12]} is not the admin")

    def update(
        self,
        caller: str,
        *,
        fee_authority: str | None = None,
        protocol_fee_bps: int | None = None,
        graduation_threshold: int | None = None,
        launches_paused: bool | None = None,
        trading_paused: bool | None = None,
    ) -> None:
        """Apply admin changes. Nothing changes if any value is invalid."""
        self._require_admin(caller)
        changes = {
            key: value
            for key, value in {
                "fee_authority": fee_authority,
                "protocol_fee_bps": protocol_fee_bps,
                "graduation_threshold": graduation_threshold,
                "launches_paused": launches_paused,
                "trading_paused": trading_paused,
            }.items()
            if value is not None
        }
        try:
            candidate = ProtocolConfig.model_validate({**self.model_dump(), **changes})
        except ValidationError as e:
            raise ConfigurationError(ErrorKind.INVALID_CONFIG, str(e)) from e

        for key in changes:
            setattr(self, key, getattr(candidate, key))
            logger.info(f"[CONFIG] Updated {key}={changes[key]}")

    def transfer_admin(self, caller: str, new_admin: str) -> None:
        self._require_admin(caller)
        logger.info(f"[CONFIG] Admin transfer {self.admin[:12]} -> {new_admin[:12]}")
        self.admin = new_admin

    def record_launch(self) -> None:
        self.total_launches += 1

    def record_graduation(self) -> None:
        self.total_graduations += 1

    def record_trade(self, volume: int, protocol_fee: int) -> None:
        self.total_volume_lamports += volume
        self.total_fees_collected += protocol_fee
