"""Enum definitions for bill calculation."""

from enum import Enum


class SplitPolicy(str, Enum):
    """How the standing charge is divided between the property and its sub-meters."""

    EQUAL = "equal"  # Same share for every billed party
    USAGE = "usage"  # Proportional to each party's share of main meter usage
    CUSTOM = "custom"  # Fixed percentage to the property, rest shared by sub-meters
