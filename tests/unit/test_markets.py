"""Unit tests for the built-in market table and market lookup."""
from __future__ import annotations

import pytest

from lending_risk.config import RegisteredMarketConfig
from lending_risk.exceptions import ConfigurationError
from lending_risk.markets import (
    STATIC_MARKETS,
    ConfigMarketRegistry,
    get_market,
    market_union,
    platform_for_chain,
)


class TestStaticMarkets:
    def test_chains_are_unique(self) -> None:
        chains = [m.chain for m in STATIC_MARKETS]
        assert len(chains) == len(set(chains))

    def test_every_market_has_assets(self) -> None:
        for market in STATIC_MARKETS:
            assert market.assets, market.chain
            for asset in market.assets.values():
                assert asset.address.startswith("0x")
                assert asset.decimals > 0

    def test_ethereum_mainnet(self) -> None:
        market = get_market("Ethereum")
        assert market.chain_id == 1
        assert market.platform == "ethereum"
        weth = market.asset_by_address("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2")
        assert weth is not None
        assert weth.symbol == "WETH"


class TestPlatformForChain:
    def test_known_chain(self) -> None:
        assert platform_for_chain("Arbitrum") == "arbitrum-one"

    def test_unknown_chain_falls_back_to_lower_name(self) -> None:
        assert platform_for_chain("Fantom") == "fantom"


class TestGetMarket:
    def test_unknown_chain_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Market not found for chain Nowhere"):
            get_market("Nowhere")

    def test_rpc_override(self) -> None:
        market = get_market("Ethereum", rpc_endpoint="https://eth.example.com")
        assert market.rpc_endpoint == "https://eth.example.com"
        assert get_market("Ethereum").rpc_endpoint != "https://eth.example.com"

    def test_custom_market_list(self, test_market) -> None:
        assert get_market("Testnet", [test_market]) is test_market


class TestMarketUnion:
    def test_registered_first_and_deduplicated(self, test_market) -> None:
        chains = market_union(["Base", "Testnet"], [test_market])
        assert chains == ["Base", "Testnet"]

    def test_static_appended(self, test_market) -> None:
        assert market_union([], [test_market]) == ["Testnet"]


class TestConfigMarketRegistry:
    @pytest.mark.asyncio
    async def test_list_chains(self) -> None:
        registry = ConfigMarketRegistry(
            [RegisteredMarketConfig(chain="Ethereum"), RegisteredMarketConfig(chain="Base")]
        )
        assert await registry.list_chains() == ["Ethereum", "Base"]

    def test_resolve_applies_override(self, test_market) -> None:
        registry = ConfigMarketRegistry(
            [RegisteredMarketConfig(chain="Testnet", rpc_endpoint="https://override")],
            [test_market],
        )
        assert registry.resolve("Testnet").rpc_endpoint == "https://override"

    def test_resolve_unknown_raises(self, test_market) -> None:
        registry = ConfigMarketRegistry([], [test_market])
        with pytest.raises(ConfigurationError):
            registry.resolve("Ethereum")

    def test_resolve_rejects_unregistered_static_chain(self, test_market) -> None:
        registry = ConfigMarketRegistry([RegisteredMarketConfig(chain="Ethereum")], [test_market])
        with pytest.raises(ConfigurationError, match="Market not found for chain Testnet"):
            registry.resolve("Testnet")

    def test_resolve_without_override_keeps_static_endpoint(self, test_market) -> None:
        registry = ConfigMarketRegistry([RegisteredMarketConfig(chain="Testnet")], [test_market])
        assert registry.resolve("Testnet") == test_market
