"""
Targets: addressable remote hosts and the results of operations on them.
"""

from .models import ResultSet, ResultStatus, Target, TargetResult
from .resolve import get_targets

__all__ = [
    "ResultSet",
    "ResultStatus",
    "Target",
    "TargetResult",
    "get_targets",
]
