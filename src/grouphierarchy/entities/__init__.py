"""Domain entities for the group hierarchy engine."""

from .core import GROUP_VERSION, GroupAcl, GroupRecord

__all__ = [
    "GROUP_VERSION",
    "GroupRecord",
    "GroupAcl",
]
