from __future__ import annotations
# tiermint/errors.py
"""
Error types for the tiered NFT collection. These are lightweight,
serializable, and safe to surface over RPC/logs.

Every failing call aborts as a whole: the error propagates out of the
component that detected it and the host transaction boundary rolls back any
partial state (see tiermint.runtime.journal).

Exports:
- TierMintError (base)
- InsufficientPayment
- SupplyExhausted
- InvalidQuantity
- InvalidStateTransition
- Unauthorized
- InvalidRecipient
- UnknownBand
- UnknownToken
- TransferFailed
- ConfigError
"""


from typing import Any, Dict, Mapping, Optional, Sequence
import json


class TierMintError(Exception):
    """Base class for collection domain errors."""

    code: str = "TIERMINT_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"))
            except (TypeError, ValueError):
                packed = str(self.details)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class InsufficientPayment(TierMintError):
    """Attached value does not equal unit price × quantity."""
    code = "TIERMINT_INSUFFICIENT_PAYMENT"

    def __init__(
        self,
        *,
        required: int,
        attached: int,
        band: Optional[str] = None,
        message: str = "incorrect Ether value",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"required": int(required), "attached": int(attached)})
        if band is not None:
            d.setdefault("band", band)
        super().__init__(message, details=d)


class SupplyExhausted(TierMintError):
    """The band (or its current batch) has nothing left to mint."""
    code = "TIERMINT_SUPPLY_EXHAUSTED"

    def __init__(
        self,
        *,
        band: str,
        scope: str = "band",
        message: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"band": band, "scope": scope})
        if message is None:
            message = "batch sold out" if scope == "batch" else "sold out"
        super().__init__(message, details=d)


class InvalidQuantity(TierMintError):
    """Requested mint quantity is zero (or negative)."""
    code = "TIERMINT_INVALID_QUANTITY"

    def __init__(
        self,
        *,
        requested: int,
        message: str = "mint at least one",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d["requested"] = int(requested)
        super().__init__(message, details=d)


class InvalidStateTransition(TierMintError):
    """A lifecycle status transition precondition is not met."""
    code = "TIERMINT_INVALID_STATE_TRANSITION"

    def __init__(
        self,
        message: str = "invalid status transition",
        *,
        token_id: Optional[int] = None,
        current: Optional[str] = None,
        target: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if token_id is not None:
            d["token_id"] = int(token_id)
        if current is not None:
            d["current"] = current
        if target is not None:
            d["target"] = target
        super().__init__(message, details=d)


class Unauthorized(TierMintError):
    """Caller lacks the role required for an operation."""
    code = "TIERMINT_UNAUTHORIZED"

    def __init__(
        self,
        *,
        account: str,
        role: str,
        message: str = "missing role",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"account": account, "role": role})
        super().__init__(message, details=d)


class InvalidRecipient(TierMintError):
    """The address being rotated out does not hold a recipient role."""
    code = "TIERMINT_INVALID_RECIPIENT"

    def __init__(
        self,
        *,
        address: str,
        message: str = "incorrect address for previous recipient",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d["address"] = address
        super().__init__(message, details=d)


class UnknownBand(TierMintError):
    code = "TIERMINT_UNKNOWN_BAND"

    def __init__(
        self,
        name: str,
        *,
        known: Sequence[str] = (),
        message: str = "unknown band",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d["band"] = name
        if known:
            d["known"] = list(known)
        super().__init__(message, details=d)


class UnknownToken(TierMintError):
    """Token id lies outside every band's identifier range."""
    code = "TIERMINT_UNKNOWN_TOKEN"

    def __init__(
        self,
        token_id: int,
        *,
        message: str = "token id out of range",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d["token_id"] = int(token_id)
        super().__init__(message, details=d)


class TransferFailed(TierMintError):
    """A native-currency transfer was rejected or could not be covered."""
    code = "TIERMINT_TRANSFER_FAILED"

    def __init__(
        self,
        *,
        to: str,
        amount: int,
        reason: Optional[str] = None,
        message: str = "transfer failed",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"to": to, "amount": int(amount)})
        if reason is not None:
            d["reason"] = reason
        super().__init__(message, details=d)


class ConfigError(TierMintError, ValueError):
    """Invalid collection configuration or construction order."""
    code = "TIERMINT_CONFIG_ERROR"


__all__ = [
    "TierMintError",
    "InsufficientPayment",
    "SupplyExhausted",
    "InvalidQuantity",
    "InvalidStateTransition",
    "Unauthorized",
    "InvalidRecipient",
    "UnknownBand",
    "UnknownToken",
    "TransferFailed",
    "ConfigError",
]
