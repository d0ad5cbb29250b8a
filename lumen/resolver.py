# lumen/resolver.py
"""Resolve account and asset names to addresses, seeds and assets.

Names are looked up in the key-value store under

    account:<name>:address
    account:<name>:seed
    asset:<name>:code | issuer | type

and federation addresses (name*domain) are resolved through the ledger
client. Stored values may point at further federation addresses; the
chain is followed for at most MAX_RESOLVE_HOPS steps.
"""

from loguru import logger

from microstellar import (
    NATIVE_ASSET,
    Asset,
    AssetType,
    MicroStellar,
    infer_asset_type,
    is_federation_address,
    source_address,
    valid_address,
    valid_address_or_seed,
)

from .errors import (
    KeyNotFoundError,
    ResolutionCycleError,
    UnresolvedAccountError,
    UnresolvedAssetError,
)
from .store import IStore

MAX_RESOLVE_HOPS = 8
KEY_TYPES = ("address", "seed")


def _other_key_type(key_type: str) -> str:
    return "seed" if key_type == "address" else "address"


class AccountResolver:
    def __init__(self, ms: MicroStellar, store: IStore):
        self.ms = ms
        self.store = store

    async def get_account(self, name: str, key_type: str) -> str:
        """Return the stored address or seed for name."""
        if key_type not in KEY_TYPES:
            raise ValueError(f"invalid key type: {key_type}")
        return await self.store.get(f"account:{name}:{key_type}")

    async def get_account_or_seed(self, name: str, key_type: str) -> str:
        """Like get_account, falling back to the other key type."""
        try:
            return await self.get_account(name, key_type)
        except KeyNotFoundError:
            return await self.get_account(name, _other_key_type(key_type))

    async def _federation_lookup(self, name: str) -> str:
        log = logger.bind(method="resolve_account")
        log.debug(f"resolving federation address: {name}")
        try:
            address = await self.ms.resolve(name)
        except Exception as ex:
            log.debug(f"federation lookup failed for {name}: {ex}")
            return name
        log.debug(f"got address: {name} = {address}")
        return address

    async def resolve_account(self, lookup_key: str, key_type: str = "address") -> str:
        """
        Turn a name, federation address, address or seed into an address or seed.

        Args:
            lookup_key: Value to resolve
            key_type: Preferred stored key type, "address" or "seed"

        Returns:
            Address or seed. A stored seed is returned when only the seed
            is known, even if an address was asked for.
        """
        if key_type not in KEY_TYPES:
            raise ValueError(f"invalid key type: {key_type}")

        visited = set()
        current = lookup_key
        for _ in range(MAX_RESOLVE_HOPS):
            if current in visited:
                raise ResolutionCycleError(f"account alias cycle: {lookup_key} -> {current}")
            visited.add(current)

            if is_federation_address(current):
                current = await self._federation_lookup(current)

            if valid_address_or_seed(current):
                return current

            try:
                value = await self.get_account_or_seed(current, key_type)
            except KeyNotFoundError:
                logger.bind(method="resolve_account").debug(
                    f"invalid address, seed, or account name: {current}")
                raise UnresolvedAccountError(f"unknown account: {current}") from None

            if not is_federation_address(value):
                return value
            current = value

        raise ResolutionCycleError(f"account alias chain too long: {lookup_key}")


class AssetResolver:
    def __init__(self, accounts: AccountResolver, store: IStore):
        self.accounts = accounts
        self.store = store

    async def _read_field(self, name: str, field: str) -> str:
        try:
            return await self.store.get(f"asset:{name}:{field}")
        except KeyNotFoundError:
            raise UnresolvedAssetError(f"could not read asset {name}: missing {field}") from None

    async def resolve_asset(self, name: str) -> Asset:
        """
        Resolve "native", "CODE:issuer[:type]" or a stored asset alias.

        The issuer of a literal is resolved as an account, so it can be an
        account name or federation address. Without a type the subtype is
        inferred from the code length.
        """
        if name in ("", "native"):
            return NATIVE_ASSET

        if ":" in name:
            parts = name.split(":")
            code, issuer_name = parts[0], parts[1]
            if not code or not issuer_name:
                raise UnresolvedAssetError(f"bad asset: {name}")

            asset_type = parts[2] if len(parts) > 2 else infer_asset_type(code).value
            try:
                issuer = source_address(await self.accounts.resolve_account(issuer_name, "address"))
            except UnresolvedAccountError:
                raise UnresolvedAssetError(f"bad asset issuer: {issuer_name}") from None
            if not valid_address(issuer):
                raise UnresolvedAssetError(f"bad asset issuer: {issuer_name}")
        else:
            code = await self._read_field(name, "code")
            issuer = await self._read_field(name, "issuer")
            asset_type = await self._read_field(name, "type")

        if asset_type == AssetType.CREDIT4.value:
            asset = Asset(code, issuer, AssetType.CREDIT4)
        elif asset_type == AssetType.CREDIT12.value:
            asset = Asset(code, issuer, AssetType.CREDIT12)
        else:
            asset = NATIVE_ASSET

        logger.debug(f"got asset: {asset}")
        return asset
