"""
tiermint.royalty — equal-split royalty distribution over a role-gated,
rotatable recipient list.
"""

from .recipients import RecipientSet
from .splitter import Distribution, RoyaltySplitter

__all__ = ["RecipientSet", "Distribution", "RoyaltySplitter"]
