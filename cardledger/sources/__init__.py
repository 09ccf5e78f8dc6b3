from cardledger.sources.base import BaseCatalogSource
from cardledger.sources.justtcg import JustTcgSource
from cardledger.sources.pokemon_tcg import PokemonTcgSource
from cardledger.sources.registry import build_http_client, build_resolver, build_sources
from cardledger.sources.sheet import SheetCatalogSource

__all__ = [
    "BaseCatalogSource",
    "JustTcgSource",
    "PokemonTcgSource",
    "SheetCatalogSource",
    "build_http_client",
    "build_resolver",
    "build_sources",
]
