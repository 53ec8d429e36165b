# In coromondex/services/evolution_chains.py
"""
Builds evolution chains from flat evolution rows.

Every row names a coromon and, optionally, the coromon it evolves from and
the one it evolves into. The rows are indexed by id and each chain is walked
from its base form along the successor pointers. Walks are bounded by the
number of coromon not yet visited, so corrupted rows (loops, self-references)
fail with MalformedChainError instead of looping forever.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..config import MAX_CHAIN_SPECIES_ID
from ..exceptions import MalformedChainError, UnknownSpeciesError
from ..models.pydantic_models import ChainEntry, EvolutionLink

logger = logging.getLogger(__name__)


class ChainIndex:
    """Chain membership and position for every coromon, keyed by coro_id."""

    def __init__(self, entries: Dict[int, ChainEntry], chains: Dict[int, Tuple[int, ...]], max_species_id: Optional[int] = MAX_CHAIN_SPECIES_ID):
        self._entries = entries
        self._chains = chains
        self._max_species_id = max_species_id

    def __contains__(self, species_id: int) -> bool:
        return species_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(sorted(self._entries))

    @property
    def entries(self) -> Mapping[int, ChainEntry]:
        return MappingProxyType(self._entries)

    def entry(self, species_id: int) -> ChainEntry:
        try:
            return self._entries[species_id]
        except KeyError:
            raise UnknownSpeciesError(species_id) from None

    def chain(self, root_id: int) -> Tuple[int, ...]:
        """The coromon ids of the chain starting at ``root_id``, base form first."""
        try:
            return self._chains[root_id]
        except KeyError:
            raise UnknownSpeciesError(root_id) from None

    def chains(self) -> List[Tuple[int, ...]]:
        return [self._chains[root] for root in sorted(self._chains)]

    def terminus_of(self, species_id: int) -> int:
        """The final evolution of the chain ``species_id`` belongs to."""
        return self._chains[self.entry(species_id).root_id][-1]

    def evolution_lines(self) -> Dict[int, str]:
        """Every chain rendered as 'Cubzero -> Aroara -> Bearealis', keyed by base form. Titans are left out."""
        lines = {}
        for root in sorted(self._chains):
            if self._max_species_id is not None and root > self._max_species_id:
                continue
            lines[root] = " -> ".join(self._entries[root].line)
        return lines


def _is_titan(species_id: Optional[int], max_species_id: Optional[int]) -> bool:
    return species_id is not None and max_species_id is not None and species_id > max_species_id


def _claim(table: Dict[int, Optional[int]], sid: int, value: int):
    current = table.setdefault(sid, value)
    if current != value:
        involved = [sid, value] if current is None else [sid, value, current]
        raise MalformedChainError("Evolution rows disagree on who evolves into whom", involved)


def _index_links(links: Iterable[EvolutionLink], max_species_id: Optional[int]) -> Tuple[Dict[int, Optional[int]], Dict[int, Optional[int]]]:
    predecessors: Dict[int, Optional[int]] = {}
    successors: Dict[int, Optional[int]] = {}

    rows = []
    for link in links:
        sid = link.coro_id
        if sid in successors:
            raise MalformedChainError("Coromon has more than one evolution row", [sid])
        pre, nxt = link.pre_evo_coro_id, link.next_evo_coro_id
        if sid in (pre, nxt):
            raise MalformedChainError("Coromon evolves into itself", [sid])
        if _is_titan(sid, max_species_id):
            pre = nxt = None
        if _is_titan(pre, max_species_id):
            pre = None
        if _is_titan(nxt, max_species_id):
            nxt = None
        predecessors[sid] = pre
        successors[sid] = nxt
        rows.append((sid, pre, nxt))

    # A row also states one direction for each neighbour it names.
    # Neighbours without a row of their own take whatever the rows agree on.
    for sid, pre, nxt in rows:
        if nxt is not None:
            _claim(predecessors, nxt, sid)
        if pre is not None:
            _claim(successors, pre, sid)
    for sid in set(predecessors) | set(successors):
        predecessors.setdefault(sid, None)
        successors.setdefault(sid, None)

    return predecessors, successors


def build_chains(
    links: Iterable[EvolutionLink],
    names: Optional[Mapping[int, str]] = None,
    species_ids: Iterable[int] = (),
    max_species_id: Optional[int] = MAX_CHAIN_SPECIES_ID,
) -> ChainIndex:
    """
    Partitions coromon into evolution chains.

    ``names`` maps coro_id to the name used in the evolution line (the id is
    used when missing). Coromon listed in ``species_ids`` without an
    evolution row become single-stage chains, as do Titans (ids above
    ``max_species_id``). Raises MalformedChainError if the rows do not form
    disjoint simple paths; no partial index is ever returned.
    """
    names = names or {}
    predecessors, successors = _index_links(links, max_species_id)
    for sid in species_ids:
        if sid not in successors:
            predecessors[sid], successors[sid] = None, None

    unvisited = set(successors)
    chains: Dict[int, Tuple[int, ...]] = {}
    for root in sorted(sid for sid, pre in predecessors.items() if pre is None):
        limit = len(unvisited)
        chain: List[int] = []
        current: Optional[int] = root
        while current is not None:
            if current not in unvisited or len(chain) >= limit:
                raise MalformedChainError("Evolution chain loops back on itself", chain + [current])
            unvisited.discard(current)
            chain.append(current)
            current = successors[current]
        chains[root] = tuple(chain)

    if unvisited:
        # Nothing left here has a base form, so every remaining row is on a loop
        raise MalformedChainError("Evolution rows form a cycle with no base form", unvisited)

    entries: Dict[int, ChainEntry] = {}
    for root, chain in chains.items():
        line = tuple(names.get(sid, str(sid)) for sid in chain)
        for position, sid in enumerate(chain, start=1):
            entries[sid] = ChainEntry(species_id=sid, root_id=root, position=position, length=len(chain), line=line)

    logger.debug(f"Built {len(chains)} evolution chains covering {len(entries)} coromon.")
    return ChainIndex(entries, chains, max_species_id)
