"""Built-in lending market table.

Bump ``STATIC_MARKETS_VERSION`` whenever a market or asset entry changes.
"""
from __future__ import annotations

from ..models import AssetDescriptor, MarketDescriptor

STATIC_MARKETS_VERSION = "2025.1"

# Aave chain name → market-data catalogue platform id
PLATFORMS: dict[str, str] = {
    "Ethereum": "ethereum",
    "Polygon": "polygon-pos",
    "Arbitrum": "arbitrum-one",
    "Optimism": "optimistic-ethereum",
    "Avalanche": "avalanche",
    "ZkSync": "zksync",
    "Base": "base",
    "Gnosis": "xdai",
    "BNB": "binance-smart-chain",
    "Metis": "metis-andromeda",
    "Scroll": "scroll",
}


def platform_for_chain(chain: str) -> str:
    """Map a market chain name to its catalogue platform id."""
    return PLATFORMS.get(chain, chain.lower())


def _assets(*entries: tuple[str, str, int]) -> dict[str, AssetDescriptor]:
    return {
        symbol: AssetDescriptor(symbol=symbol, address=address, decimals=decimals)
        for symbol, address, decimals in entries
    }


def _market(
    chain: str,
    chain_id: int,
    rpc_endpoint: str,
    pool_addresses_provider: str,
    assets: dict[str, AssetDescriptor],
) -> MarketDescriptor:
    return MarketDescriptor(
        chain=chain,
        chain_id=chain_id,
        rpc_endpoint=rpc_endpoint,
        platform=platform_for_chain(chain),
        contracts={"POOL_ADDRESSES_PROVIDER": pool_addresses_provider},
        assets=assets,
    )


STATIC_MARKETS: tuple[MarketDescriptor, ...] = (
    _market(
        "ZkSync",
        324,
        "https://mainnet.era.zksync.io",
        "0x2A3948BB219D6B2Fa83D64100006391a96bE6cb7",
        _assets(
            ("WETH", "0x5AEa5775959fBC2557Cc8789bC1bf90A239D9a91", 18),
            ("USDC", "0x1d17CBcF0D6D143135aE902365D2E5e2A16538D4", 6),
        ),
    ),
    _market(
        "Polygon",
        137,
        "https://polygon-bor-rpc.publicnode.com",
        "0xa97684ead0e402dC232d5A977953DF7ECBaB3CDb",
        _assets(
            ("WETH", "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619", 18),
            ("USDC", "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174", 6),
            ("WBTC", "0x1BFD67037B42Cf73acF2047067bd4F2C47D9BfD6", 8),
            ("WMATIC", "0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270", 18),
        ),
    ),
    _market(
        "Arbitrum",
        42161,
        "https://public-arb-mainnet.fastnode.io",
        "0xa97684ead0e402dC232d5A977953DF7ECBaB3CDb",
        _assets(
            ("WETH", "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1", 18),
            ("USDCn", "0xaf88d065e77c8cC2239327C5EDb3A432268e5831", 6),
            ("WBTC", "0x2f2a2543B76A4166549F7aaB2e75Bef0aefC5B0f", 8),
            ("ARB", "0x912CE59144191C1204E64559FE8253a0e49E6548", 18),
        ),
    ),
    _market(
        "Base",
        8453,
        "https://1rpc.io/base",
        "0xe20fCBdBfFC4Dd138cE8b2E6FBb6CB49777ad64D",
        _assets(
            ("WETH", "0x4200000000000000000000000000000000000006", 18),
            ("USDC", "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6),
            ("cbETH", "0x2Ae3F1Ec7F1F5012CFEab0185bfc7aa3cf0DEc22", 18),
        ),
    ),
    _market(
        "Ethereum",
        1,
        "https://ethereum-rpc.publicnode.com",
        "0x2f39d218133AFaB8F2B819B1066c7E434Ad94E9e",
        _assets(
            ("WETH", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18),
            ("USDC", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6),
            ("USDT", "0xdAC17F958D2ee523a2206206994597C13D831ec7", 6),
            ("DAI", "0x6B175474E89094C44Da98b954EedeAC495271d0F", 18),
            ("WBTC", "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", 8),
            ("LINK", "0x514910771AF9Ca656af840dff83E8264EcF986CA", 18),
            ("AAVE", "0x7Fc66500c84A76Ad7e9c93437bFc5Ac33E2DDaE9", 18),
        ),
    ),
    _market(
        "Optimism",
        10,
        "https://optimism-rpc.publicnode.com",
        "0xa97684ead0e402dC232d5A977953DF7ECBaB3CDb",
        _assets(
            ("WETH", "0x4200000000000000000000000000000000000006", 18),
            ("USDCn", "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85", 6),
            ("OP", "0x4200000000000000000000000000000000000042", 18),
        ),
    ),
)
