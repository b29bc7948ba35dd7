"""
qvote Record State

  - Governance / Proposal / Vote / VoteType   (records.py)
  - RecordStore / MemoryRecordStore           (store.py)
"""

from .records import (
    Governance,
    Proposal,
    Vote,
    VoteType,
    record_from_dict,
)
from .store import MemoryRecordStore, RecordStore

__all__ = [
    "Governance",
    "Proposal",
    "Vote",
    "VoteType",
    "record_from_dict",
    "MemoryRecordStore",
    "RecordStore",
]
