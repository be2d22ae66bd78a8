"""
Data layer for the stockboard extractor.

Symbol resolution, the relay-chain fetcher, the Groww and Yahoo Finance
page parsers, normalization, the ownership merge and the request cache.
"""

from stockboard.data.cache import RequestCache
from stockboard.data.merge import FIELD_OWNERS, apply_promoter_fallback, merge
from stockboard.data.normalize import map_to_canonical, normalize
from stockboard.data.relay import RelayChainFetcher
from stockboard.data.resolver import SymbolResolver

__all__ = [
    "FIELD_OWNERS",
    "RelayChainFetcher",
    "RequestCache",
    "SymbolResolver",
    "apply_promoter_fallback",
    "map_to_canonical",
    "merge",
    "normalize",
]
