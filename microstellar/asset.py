# microstellar/asset.py
"""Asset value type."""

from dataclasses import dataclass
from enum import Enum

from stellar_sdk import Asset as SdkAsset

from .address_utils import valid_address
from .errors import InvalidAssetError


MAX_ASSET_CODE_LENGTH = 12
CREDIT4_INFER_MAX_LENGTH = 5


class AssetType(str, Enum):
    """Asset subtype, values match Horizon's asset_type field."""
    NATIVE = "native"
    CREDIT4 = "credit_alphanum4"
    CREDIT12 = "credit_alphanum12"


@dataclass(frozen=True)
class Asset:
    """
    Native or credit asset.

    Immutable value object. Native assets carry an empty code and issuer.
    """
    code: str = ""
    issuer: str = ""
    asset_type: AssetType = AssetType.NATIVE

    @property
    def is_native(self) -> bool:
        return self.asset_type == AssetType.NATIVE

    def validate(self) -> None:
        """Raise InvalidAssetError if the asset violates its invariants."""
        if self.is_native:
            if self.code or self.issuer:
                raise InvalidAssetError(f"native asset can't have code or issuer: {self}")
            return

        if not self.code:
            raise InvalidAssetError("invalid asset: empty code")
        if len(self.code) > MAX_ASSET_CODE_LENGTH:
            raise InvalidAssetError(f"invalid asset code: {self.code}")
        if not valid_address(self.issuer):
            raise InvalidAssetError(f"invalid asset issuer: {self.issuer}")

    def to_sdk(self) -> SdkAsset:
        """Convert to stellar_sdk Asset (the SDK derives alphanum4/12 from the code length)."""
        if self.is_native:
            return SdkAsset.native()
        return SdkAsset(self.code, self.issuer)

    @classmethod
    def from_horizon(cls, record: dict) -> "Asset":
        """Build from a Horizon balance or operation record."""
        asset_type = record.get("asset_type", AssetType.NATIVE.value)
        if asset_type == AssetType.NATIVE.value:
            return NATIVE_ASSET
        return cls(
            code=record.get("asset_code", ""),
            issuer=record.get("asset_issuer", ""),
            asset_type=AssetType(asset_type),
        )

    def __str__(self) -> str:
        if self.is_native:
            return "XLM"
        return f"{self.code}:{self.issuer}"


NATIVE_ASSET = Asset()


def new_asset(code: str, issuer: str, asset_type: AssetType) -> Asset:
    return Asset(code=code, issuer=issuer, asset_type=AssetType(asset_type))


def infer_asset_type(code: str) -> AssetType:
    """Guess the credit subtype from the code length."""
    if len(code) <= CREDIT4_INFER_MAX_LENGTH:
        return AssetType.CREDIT4
    return AssetType.CREDIT12
