"""Error taxonomy for scenario requests and ingestion runs."""
from __future__ import annotations


class LendingRiskError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(LendingRiskError, ValueError):
    """Unknown market/chain or invalid configuration. Fatal for a request."""


class CollaboratorError(LendingRiskError):
    """An external collaborator (chain reader, price provider, store) failed."""

    def __init__(self, collaborator: str, message: str) -> None:
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator


class ScenarioTimeoutError(LendingRiskError, TimeoutError):
    """A scenario request exceeded the caller-supplied timeout."""


class AssetNotFoundError(LendingRiskError, LookupError):
    """No catalogue coin is deployed at the given contract address."""

    def __init__(self, address: str, platform: str) -> None:
        super().__init__(f"Token not found for address {address} on platform {platform}")
        self.address = address
        self.platform = platform
