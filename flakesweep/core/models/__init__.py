"""
Domain models — Pydantic types for flakesweep.

All models are re-exported here for convenient access:

    from flakesweep.core.models import Lockfile, LockfileNode, Workspace, Action, Receipt
"""

from flakesweep.core.models.action import Action, Receipt
from flakesweep.core.models.lockfile import (
    GitLocked,
    GitOriginal,
    GitServiceLocked,
    GitServiceOriginal,
    IndirectOriginal,
    LockedState,
    Lockfile,
    LockfileNode,
    OriginalReference,
    OtherLocked,
    OtherOriginal,
    PathLocked,
    TarballLocked,
    decode_lockfile,
    read_lockfile,
)
from flakesweep.core.models.target import MatchTarget, NestedInputTarget, RootTarget
from flakesweep.core.models.workspace import Workspace

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # lockfile.py
    "GitLocked",
    "GitOriginal",
    "GitServiceLocked",
    "GitServiceOriginal",
    "IndirectOriginal",
    "LockedState",
    "Lockfile",
    "LockfileNode",
    "OriginalReference",
    "OtherLocked",
    "OtherOriginal",
    "PathLocked",
    "TarballLocked",
    "decode_lockfile",
    "read_lockfile",
    # target.py
    "MatchTarget",
    "NestedInputTarget",
    "RootTarget",
    # workspace.py
    "Workspace",
]
