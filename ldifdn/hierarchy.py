"""Rebuild container trees from a flat collection of DNs.

Directory entries can only be created below an existing container, so any batch of
entries has to be processed parent-before-child. Sorting by depth first guarantees
this, ties are broken by the ordinal order of the DNs strings.
"""

from typing import Dict, Iterable, List, Tuple

from ldifdn.dn import DistinguishedName


def hierarchy_key(dn: DistinguishedName) -> Tuple[int, str]:
    return (dn.depth, dn.string)


def sort_hierarchy(dns: Iterable[DistinguishedName]) -> List[DistinguishedName]:
    return sorted(dns, key=hierarchy_key)


def containers(dns: Iterable[DistinguishedName]) -> List[DistinguishedName]:
    """Collect the distinct ancestors of all given DNs, parent-before-child.

    The given DNs themselves are only included if they are an ancestor of another
    given DN.
    """
    seen: Dict[DistinguishedName, None] = {}
    for dn in dns:
        for ancestor in dn.parent_hierarchy:
            seen[ancestor] = None
    return sort_hierarchy(seen)


def children(parent: DistinguishedName, dns: Iterable[DistinguishedName]) -> List[DistinguishedName]:
    """Return the DNs which are placed directly below parent."""
    return [dn for dn in dns if dn.depth == parent.depth + 1 and dn.parent == parent]
