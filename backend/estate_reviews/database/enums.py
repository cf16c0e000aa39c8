"""
backend/estate_reviews/database/enums.py

Enumerations

Defines enumerations used across the engine:
- TargetKind: the two kinds of reviewable entities (Listing, Agent)
"""

from enum import Enum

# ---------------------------------------------------
# Review Target Enumeration
# ---------------------------------------------------


class TargetKind(str, Enum):
    """
    Enum representing the kind of entity a review is about.

    Values:
    - LISTING
    - AGENT
    """

    LISTING = "listing"
    AGENT = "agent"
