# In coromondex/services/trait_resolver.py

import logging
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..exceptions import UnsupportedChainShape
from ..models.pydantic_models import (
    NO_TRAITS_AVAILABLE,
    Dataset,
    ResolvedSpecies,
    ResolvedTrait,
    SpeciesTrait,
    TraitInfo,
    TraitKind,
    TraitVersionInfo,
)
from .evolution_chains import ChainIndex

logger = logging.getLogger(__name__)

# Plus tier by chain length, indexed by 1-based chain position.
# Base forms of longer chains get the strongest version of a trait.
TIER_TABLE: Mapping[int, Sequence[int]] = {
    1: (0,),
    2: (2, 0),
    3: (2, 1, 0),
}


def plus_for(length: int, position: int, table: Mapping[int, Sequence[int]] = TIER_TABLE, root_id: Optional[int] = None) -> int:
    tiers = table.get(length)
    if tiers is None or not 1 <= position <= len(tiers):
        raise UnsupportedChainShape(length, position, root_id)
    return tiers[position - 1]


class TraitsIndex:
    """Direct trait rows per coromon, plus trait version texts by tier."""

    def __init__(self, rows: Iterable[SpeciesTrait], versions: Iterable[TraitVersionInfo] = (), traits: Iterable[TraitInfo] = ()):
        self._by_species: Dict[int, List[SpeciesTrait]] = defaultdict(list)
        for row in rows:
            self._by_species[row.coro_id].append(row)
        self._versions: Dict[int, TraitVersionInfo] = {}
        self._by_tier: Dict[Tuple[int, int], TraitVersionInfo] = {}
        for version in versions:
            self._versions[version.trait_version_id] = version
            self._by_tier.setdefault((version.trait_id, version.plus), version)
        self._kinds: Dict[int, TraitKind] = {t.trait_id: t.kind for t in traits}

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> "TraitsIndex":
        return cls(dataset.species_traits, dataset.trait_versions, dataset.traits)

    def direct(self, species_id: int) -> Tuple[SpeciesTrait, ...]:
        return tuple(self._by_species.get(species_id, ()))

    def description(self, row: SpeciesTrait, plus: int, use_row_version: bool = True) -> Optional[str]:
        if use_row_version and row.trait_version_id is not None:
            version = self._versions.get(row.trait_version_id)
        else:
            version = self._by_tier.get((row.trait_id, plus))
        return version.description if version else None

    def kind(self, trait_id: int) -> Optional[TraitKind]:
        return self._kinds.get(trait_id)


def _percent(chance: Decimal) -> int:
    # Half rounds away from zero, like the database's ROUND()
    return int((chance * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _merge(rows: Sequence[SpeciesTrait], traits: TraitsIndex, plus: int, inherited: bool) -> List[ResolvedTrait]:
    best: Dict[str, SpeciesTrait] = {}
    for row in rows:
        current = best.get(row.trait_name)
        if current is None or row.chance > current.chance:
            best[row.trait_name] = row
    return [
        ResolvedTrait(
            name=name,
            chance=row.chance,
            percent=_percent(row.chance),
            kind=traits.kind(row.trait_id),
            # An inherited row's version belongs to the final evolution, not to this tier
            description=traits.description(row, plus, use_row_version=not inherited),
        )
        for name, row in sorted(best.items())
    ]


def resolve_species(
    chain_index: ChainIndex,
    traits_index: TraitsIndex,
    species_id: int,
    table: Mapping[int, Sequence[int]] = TIER_TABLE,
) -> ResolvedSpecies:
    """
    Resolves the plus tier and effective traits of one coromon.

    A coromon with no traits of its own takes the traits of the final
    evolution in its chain. Raises UnknownSpeciesError for ids outside the
    chain index and UnsupportedChainShape when the tier table has no entry
    for the coromon's place in its chain.
    """
    entry = chain_index.entry(species_id)
    plus = plus_for(entry.length, entry.position, table, entry.root_id)

    rows = traits_index.direct(species_id)
    inherited_from = None
    if not rows:
        terminus = chain_index.terminus_of(species_id)
        if terminus != species_id:
            rows = traits_index.direct(terminus)
            if rows:
                inherited_from = terminus

    traits = _merge(rows, traits_index, plus, inherited_from is not None)
    return ResolvedSpecies(
        species_id=species_id,
        name=entry.name,
        plus=plus,
        chain_position=entry.position,
        chain_length=entry.length,
        traits=traits or NO_TRAITS_AVAILABLE,
        inherited_from=inherited_from,
    )


def resolve_all(
    chain_index: ChainIndex,
    traits_index: TraitsIndex,
    skip_unsupported: bool = False,
    table: Mapping[int, Sequence[int]] = TIER_TABLE,
) -> List[ResolvedSpecies]:
    """Resolves every coromon in id order; the full traits report."""
    resolved = []
    for species_id in chain_index:
        try:
            resolved.append(resolve_species(chain_index, traits_index, species_id, table))
        except UnsupportedChainShape as e:
            if not skip_unsupported:
                raise
            logger.warning(f"Skipping coromon {species_id}: {e}")
    return resolved
