"""Software identity names and the installed-state fold.

An identity is the pair (package, version). Its name has the form
``<tag_creator>__<product>-<package>-<version>``, e.g.
``strongswan.org__Ubuntu_22.04-x86_64-libssl3-3.0.2``. Names can collide
(``foo`` 2-1 and ``foo-2`` 1), so stores key identities by the pair.

Fold rules, applied to operations in event order:
  Install, Upgrade   -> (package, version) installed
  Upgrade            -> (package, old_version) not installed
  Remove, Purge      -> (package, version) not installed; without a version
                        every known version of the package
"""

from typing import Iterable

from ..history.models import OperationKind, PackageOperation
from .base import IdentityNamer


def make_namer(tag_creator: str, product: str) -> IdentityNamer:
    """Build an identity namer for one OS product."""

    def namer(package: str, version: str) -> str:
        return f"{tag_creator}__{product}-{package}-{version}"

    return namer


def fold_operations(operations: Iterable[PackageOperation]) -> dict[tuple[str, str], bool]:
    """Fold operations into ``{(package, version): installed}``.

    Insertion order of the result follows first appearance.
    """
    state: dict[tuple[str, str], bool] = {}
    for op in operations:
        if op.kind is OperationKind.UPGRADE and op.old_version:
            state[(op.package, op.old_version)] = False
        if op.kind.installs:
            if op.version:
                state[(op.package, op.version)] = True
        elif op.version:
            state[(op.package, op.version)] = False
        else:
            for key in state:
                if key[0] == op.package:
                    state[key] = False
    return state
