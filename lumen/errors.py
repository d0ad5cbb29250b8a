class LumenError(Exception):
    """Base class for CLI layer errors."""


class StoreError(LumenError):
    """The key-value store failed."""


class KeyNotFoundError(StoreError, KeyError):
    """No value stored under the key (or it expired)."""

    def __str__(self) -> str:
        return f"key not found: {self.args[0] if self.args else ''}"


class UnresolvedAccountError(LumenError):
    """No address, seed or stored alias matches the lookup key."""


class UnresolvedAssetError(LumenError):
    """No asset literal or stored alias matches the name."""


class ResolutionCycleError(UnresolvedAccountError):
    """Alias resolution revisited a name or ran out of hops."""
