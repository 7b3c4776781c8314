"""TokioAI storage components."""

from .persistence import PersistenceGateway, parse_blob, read_blob, write_atomic

__all__ = ["PersistenceGateway", "parse_blob", "read_blob", "write_atomic"]
