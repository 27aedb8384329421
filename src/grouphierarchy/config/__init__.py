"""Configuration utilities for the group hierarchy engine."""

from .policies import GroupHierarchyPolicy, Policies, load_policies
from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "Policies",
    "load_policies",
    "GroupHierarchyPolicy",
]
