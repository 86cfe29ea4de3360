"""Launch metadata with fixed byte budgets.

Lengths are UTF-8 byte counts, not characters. Name, symbol and uri over budget
are rejected. Social links are cut at the raw byte offset, which can split a
multi-byte character; the lossy decode in ``from_fixed_bytes`` then drops the
partial character. That cut rule is kept as-is pending a product decision.
"""

from pydantic import BaseModel, ValidationError, field_validator

from src.errors import ErrorKind, InputValidationError

NAME_MAX_BYTES = 32
SYMBOL_MAX_BYTES = 10
URI_MAX_BYTES = 200
SOCIAL_MAX_BYTES = 64


def to_fixed_bytes(value: str, size: int) -> bytes:
    """Zero-padded fixed-size buffer, truncated at ``size`` bytes."""
    raw = value.encode("utf-8")[:size]
    return raw + b"\x00" * (size - len(raw))


def from_fixed_bytes(buf: bytes) -> str:
    return buf.decode("utf-8", errors="ignore").rstrip("\x00")


def truncate_utf8(value: str | None, size: int) -> str | None:
    if value is None:
        return None
    return from_fixed_bytes(to_fixed_bytes(value, size))


def _require_max_bytes(value: str, size: int, field: str) -> str:
    length = len(value.encode("utf-8"))
    if length > size:
        raise InputValidationError(
            ErrorKind.MALFORMED_METADATA, f"{field} is {length} bytes, max {size}"
        )
    return value


class LaunchMetadata(BaseModel):
    name: str
    symbol: str
    uri: str
    twitter: str | None = None
    telegram: str | None = None
    website: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def create(
        cls,
        name: str,
        symbol: str,
        uri: str,
        *,
        twitter: str | None = None,
        telegram: str | None = None,
        website: str | None = None,
    ) -> "LaunchMetadata":
        """Validate lengths, truncate social links, and build the model."""
        try:
            return cls(
                name=_require_max_bytes(name, NAME_MAX_BYTES, "name"),
                symbol=_require_max_bytes(symbol, SYMBOL_MAX_BYTES, "symbol"),
                uri=_require_max_bytes(uri, URI_MAX_BYTES, "uri"),
                twitter=truncate_utf8(twitter, SOCIAL_MAX_BYTES),
                telegram=truncate_utf8(telegram, SOCIAL_MAX_BYTES),
                website=truncate_utf8(website, SOCIAL_MAX_BYTES),
            )
        except ValidationError as e:
            raise InputValidationError(ErrorKind.MALFORMED_METADATA, str(e)) from e

    @field_validator("name", "symbol")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value
