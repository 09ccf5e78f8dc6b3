from cardledger.parsers.common import ParseError, read_json

__all__ = [
    "ParseError",
    "read_json",
]
