"""Deterministic account addresses.

Every address is a program-derived address over fixed seeds, so any party can
recompute it from public identifiers. Addresses are passed around as base58
strings; solders does the hashing.

Venue pool addresses are keyed by the canonical (byte-sorted) mint
pair, so both orderings of the same pair land on one address.
"""

import struct

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

CONFIG_SEED = b"launchr_config"
LAUNCH_SEED = b"launch"
CURVE_VAULT_SEED = b"curve_vault"
TOKEN_VAULT_SEED = b"token_vault"
USER_POSITION_SEED = b"user_position"
LAUNCH_AUTHORITY_SEED = b"launch_authority"
FEE_VAULT_SEED = b"fee_vault"
GRADUATION_VAULT_SEED = b"graduation_vault"

VENUE_POOL_SEED = b"pool"
VENUE_VAULT_SEED = b"vault"
VENUE_POSITION_SEED = b"position"
VENUE_BIN_ARRAY_SEED = b"bin_array"

# Venue vault kinds
VAULT_BASE = b"base"
VAULT_QUOTE = b"quote"
VAULT_CREATOR_FEE = b"creator_fee"
VAULT_HOLDERS_FEE = b"holders_fee"
VAULT_NFT_FEE = b"nft_fee"
VAULT_PROTOCOL_FEE = b"protocol_fee"


def _key(address: str) -> Pubkey:
    return Pubkey.from_string(address)


def _derive(seeds: list[bytes], program_id: str) -> tuple[str, int]:
    pda, bump = Pubkey.find_program_address(seeds, _key(program_id))
    return str(pda), bump


def canonical_pair(mint_a: str, mint_b: str) -> tuple[str, str]:
    """Order two mints by their raw 32 bytes, smaller first."""
    if bytes(_key(mint_a)) < bytes(_key(mint_b)):
        return mint_a, mint_b
    return mint_b, mint_a


def canonical_mint_order(token_mint: str, quote_mint: str) -> tuple[str, str, bool]:
    """(base, quote, base_mint_is_primary) as the venue sees the pair.

    ``base_mint_is_primary`` is True when the launched token sorts first and
    therefore stays the venue's base side.
    """
    base, quote = canonical_pair(token_mint, quote_mint)
    return base, quote, base == token_mint


# ── Launchpad program ──────────────────────────────────────────────────


def config_address(program_id: str) -> tuple[str, int]:
    return _derive([CONFIG_SEED], program_id)


def launch_address(mint: str, program_id: str) -> tuple[str, int]:
    return _derive([LAUNCH_SEED, bytes(_key(mint))], program_id)


def curve_vault_address(launch: str, program_id: str) -> tuple[str, int]:
    return _derive([CURVE_VAULT_SEED, bytes(_key(launch))], program_id)


def token_vault_address(launch: str, program_id: str) -> tuple[str, int]:
    return _derive([TOKEN_VAULT_SEED, bytes(_key(launch))], program_id)


def user_position_address(launch: str, user: str, program_id: str) -> tuple[str, int]:
    return _derive([USER_POSITION_SEED, bytes(_key(launch)), bytes(_key(user))], program_id)


def launch_authority_address(launch: str, program_id: str) -> tuple[str, int]:
    return _derive([LAUNCH_AUTHORITY_SEED, bytes(_key(launch))], program_id)


def fee_vault_address(config: str, program_id: str) -> tuple[str, int]:
    return _derive([FEE_VAULT_SEED, bytes(_key(config))], program_id)


def graduation_vault_address(launch: str, program_id: str) -> tuple[str, int]:
    return _derive([GRADUATION_VAULT_SEED, bytes(_key(launch))], program_id)


# ── Liquidity venue program ────────────────────────────────────────────


def venue_pool_address(mint_a: str, mint_b: str, venue_program_id: str) -> tuple[str, int]:
    first, second = canonical_pair(mint_a, mint_b)
    return _derive([VENUE_POOL_SEED, bytes(_key(first)), bytes(_key(second))], venue_program_id)


def venue_vault_address(pool: str, vault_kind: bytes, venue_program_id: str) -> tuple[str, int]:
    return _derive([VENUE_VAULT_SEED, bytes(_key(pool)), vault_kind], venue_program_id)


def venue_position_address(
    pool: str, owner: str, nonce: int, venue_program_id: str
) -> tuple[str, int]:
    return _derive(
        [VENUE_POSITION_SEED, bytes(_key(pool)), bytes(_key(owner)), struct.pack("<Q", nonce)],
        venue_program_id,
    )


def venue_bin_array_address(
    pool: str, lower_bin_index: int, venue_program_id: str
) -> tuple[str, int]:
    return _derive(
        [VENUE_BIN_ARRAY_SEED, bytes(_key(pool)), struct.pack("<i", lower_bin_index)],
        venue_program_id,
    )
