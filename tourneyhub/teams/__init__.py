"""Team lookups used when crediting team results."""

from .services import TeamService

__all__ = ["TeamService"]
