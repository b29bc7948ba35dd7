"""
qvote Quadratic Voting Package

Core imports are lazily loaded so that importing a submodule does not pull in
the whole program. For direct module access, import from submodules:

    from qvote.governance import GovernanceController
    from qvote.state import MemoryRecordStore
    from qvote.exceptions import DuplicateVoteError
"""

__version__ = "0.1.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'GovernanceController':
        from .governance import GovernanceController
        return GovernanceController
    elif name == 'MemoryRecordStore':
        from .state import MemoryRecordStore
        return MemoryRecordStore
    elif name == 'AssetLedger':
        from .assets import AssetLedger
        return AssetLedger
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'qvote' has no attribute {name!r}")

__all__ = ['GovernanceController', 'MemoryRecordStore', 'AssetLedger', 'load_config']
