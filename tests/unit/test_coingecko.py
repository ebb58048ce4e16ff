"""Unit tests for the CoinGecko client: coin lookup, caching, and errors."""
from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from lending_risk.config import CoinGeckoConfig
from lending_risk.exceptions import AssetNotFoundError, CollaboratorError
from lending_risk.providers.coingecko import CoinGeckoClient

COINS = [
    {"id": "ethereum", "symbol": "eth", "platforms": {}},
    {
        "id": "weth",
        "symbol": "weth",
        "platforms": {
            "ethereum": "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2",
            "arbitrum-one": "0x82af49447d8a07e3bd95bd0d56f35241523fbab1",
        },
    },
    {"id": "broken", "symbol": "x", "platforms": None},
]


@pytest.fixture()
def client() -> CoinGeckoClient:
    return CoinGeckoClient(
        CoinGeckoConfig(base_url="https://cg.example.com/api/v3", api_key="demo")
    )


def _mock_session(data=None, status: int = 200, error: Exception | None = None):
    """Create a mock aiohttp session that returns given data or raises error."""
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=data)
    mock_response.text = AsyncMock(return_value="rate limited")
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    if error:
        mock_session.get = MagicMock(side_effect=error)
    else:
        mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestFindAssetByChainAddress:
    @pytest.mark.asyncio
    async def test_matches_case_insensitively(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session(COINS)

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                coin_id = await client.find_asset_by_chain_address(
                    "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", "ethereum"
                )

        assert coin_id == "weth"
        _, kwargs = mock_session.get.call_args
        assert kwargs["params"]["include_platform"] == "true"
        assert kwargs["params"]["x_cg_demo_api_key"] == "demo"

    @pytest.mark.asyncio
    async def test_unknown_address_returns_none(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session(COINS)

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                assert await client.find_asset_by_chain_address("0xdead", "ethereum") is None
                assert (
                    await client.find_asset_by_chain_address(
                        "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2", "base"
                    )
                    is None
                )


class TestCoinListCache:
    @pytest.mark.asyncio
    async def test_list_fetched_once_within_ttl(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session(COINS)

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                await client.get_coins_list()
                await client.get_coins_list()

        assert mock_session.get.call_count == 1
        assert client.cache_info()["exists"] is True
        assert client.cache_info()["coins"] == 3

    @pytest.mark.asyncio
    async def test_force_refresh_and_clear(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session(COINS)

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                await client.get_coins_list()
                await client.get_coins_list(force_refresh=True)
                client.clear_cache()
                assert client.cache_info() == {"exists": False}
                await client.get_coins_list()

        assert mock_session.get.call_count == 3

    @pytest.mark.asyncio
    async def test_expired_cache_refetches(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session(COINS)

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                await client.get_coins_list()
                client._coins_fetched_at -= client.cache_ttl + 1
                await client.get_coins_list()

        assert mock_session.get.call_count == 2


class TestDailyPriceWindow:
    @pytest.mark.asyncio
    async def test_parses_prices_and_volumes(self, client: CoinGeckoClient) -> None:
        chart = {
            "prices": [[1749859200000, 2000.0], [1749945600000, 2100.0]],
            "total_volumes": [[1749859200000, 5e9], [1749945600000, 6e9]],
        }
        mock_session = _mock_session(chart)

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                window = await client.get_daily_price_window("weth", "usd", 2)

        assert window.prices == ((1749859200000, 2000.0), (1749945600000, 2100.0))
        assert window.volumes[0] == (1749859200000, 5e9)
        args, kwargs = mock_session.get.call_args
        assert args[0] == "https://cg.example.com/api/v3/coins/weth/market_chart"
        assert kwargs["params"]["vs_currency"] == "usd"
        assert kwargs["params"]["days"] == "2"
        assert kwargs["params"]["interval"] == "daily"

    @pytest.mark.asyncio
    async def test_missing_volumes(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session({"prices": [[1, 1.0], [2, 2.0]]})

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                window = await client.get_daily_price_window("weth", "usd", 2)

        assert window.volumes == ()


class TestTokenMarketChart:
    @pytest.mark.asyncio
    async def test_looks_up_coin_then_fetches_chart(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session(COINS)

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                await client.get_coins_list()
                mock_session.get.return_value.json = AsyncMock(return_value={"prices": [[1, 2.0]]})
                chart = await client.get_token_market_chart(
                    "0x82AF49447D8a07e3bd95BD0d56f35241523fBab1", "arbitrum-one", "usd", 30
                )

        assert chart == {"prices": [[1, 2.0]]}
        args, kwargs = mock_session.get.call_args
        assert args[0] == "https://cg.example.com/api/v3/coins/weth/market_chart"
        assert kwargs["params"]["days"] == "30"

    @pytest.mark.asyncio
    async def test_unknown_token_raises(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session(COINS)

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                with pytest.raises(AssetNotFoundError, match="0xdead"):
                    await client.get_token_market_chart("0xdead", "ethereum", "usd", 30)

        assert mock_session.get.call_count == 1


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_raises(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session(status=429)

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                with pytest.raises(CollaboratorError) as exc_info:
                    await client.get_market_chart("weth", "usd", 2)

        assert exc_info.value.collaborator == "coingecko"

    @pytest.mark.asyncio
    async def test_network_error_wrapped(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session(error=aiohttp.ClientConnectionError("refused"))

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                with pytest.raises(CollaboratorError):
                    await client.get_coins_list()

        assert client.cache_info() == {"exists": False}

    @pytest.mark.asyncio
    async def test_malformed_json_raises_collaborator_error(self, client: CoinGeckoClient) -> None:
        mock_session = _mock_session(status=200)
        mock_session.get.return_value.json = AsyncMock(
            side_effect=json.JSONDecodeError("Expecting value", "not json", 0)
        )

        with patch("lending_risk.providers.coingecko.aiohttp.ClientSession", return_value=mock_session):
            with patch("lending_risk.providers.coingecko.aiohttp.TCPConnector"):
                with pytest.raises(CollaboratorError) as exc_info:
                    await client.get_market_chart("weth", "usd", 2)

        assert exc_info.value.collaborator == "coingecko"
