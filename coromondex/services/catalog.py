# In coromondex/services/catalog.py

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel.ext.asyncio.session import AsyncSession

from ..config import DATA_DIR
from ..exceptions import UnknownSpeciesError
from ..models.pydantic_models import Dataset, ResolvedSpecies, Species
from . import database_client, dataset_loader, seeder
from .evolution_chains import build_chains
from .trait_resolver import TraitsIndex, resolve_all, resolve_species
from .type_chart import TypeChart, format_multiplier

logger = logging.getLogger(__name__)


class Catalog:
    """The loaded dataset with its chain index, traits index and type chart, built once."""

    def __init__(self, dataset: Dataset):
        self.dataset = dataset
        self.chains = build_chains(
            dataset.evolutions,
            names=dataset.names(),
            species_ids=[s.coro_id for s in dataset.species],
        )
        self.traits = TraitsIndex.from_dataset(dataset)
        self.type_chart = TypeChart.from_dataset(dataset)
        self._conditions = {link.coro_id: link.condition for link in dataset.evolutions}

    def find(self, name_or_id: Union[str, int]) -> Species:
        # bool is an int subclass, but True is not coromon 1
        if isinstance(name_or_id, bool) or not isinstance(name_or_id, (str, int)):
            raise UnknownSpeciesError(name_or_id)
        if isinstance(name_or_id, int) or name_or_id.strip().isdigit():
            species = self.dataset.species_by_id(int(name_or_id))
        else:
            species = self.dataset.species_by_name(name_or_id)
        if species is None:
            raise UnknownSpeciesError(name_or_id)
        return species

    def resolve(self, name_or_id: Union[str, int]) -> ResolvedSpecies:
        return resolve_species(self.chains, self.traits, self.find(name_or_id).coro_id)

    def describe(self, name_or_id: Union[str, int]) -> dict:
        """Everything known about one coromon, as plain data."""
        species = self.find(name_or_id)
        entry = self.chains.entry(species.coro_id)
        resolved = resolve_species(self.chains, self.traits, species.coro_id)
        next_evo = None
        if not entry.is_terminus:
            next_evo = {
                "name": entry.line[entry.position],
                "condition": self._conditions.get(species.coro_id),
            }
        return {
            "id": species.coro_id,
            "name": species.name,
            "type": species.type_name,
            "sp": species.sp,
            "stats": {stat.value: value for stat, value in species.stats.items()},
            "titan": species.is_titan,
            "evolution": {
                "line": list(entry.line),
                "position": entry.position,
                "length": entry.length,
                "next": next_evo,
            },
            "plus": resolved.plus,
            "traits": resolved.display(),
        }

    def evolution_lines(self) -> List[dict]:
        return [
            {"base_coro_id": root, "evolution_line": line}
            for root, line in self.chains.evolution_lines().items()
        ]

    def traits_report(self) -> List[dict]:
        return [
            {"coromon_id": r.species_id, "coromon_name": r.name, "plus": r.plus, "traits": r.display()}
            for r in resolve_all(self.chains, self.traits, skip_unsupported=True)
        ]

    def type_matchup(self, attacking: str, defending: Sequence[str]) -> dict:
        chart = self.type_chart
        return {
            "attacking": chart.canonical(attacking),
            "defending": [chart.canonical(d) for d in defending],
            "multiplier": format_multiplier(chart.combined(attacking, defending)),
        }


async def load_catalog(engine: Optional[AsyncEngine] = None, data_dir: Path = DATA_DIR) -> Catalog:
    """Creates the schema, seeds it if empty, and loads the catalog."""
    target = engine or database_client.engine
    await database_client.init_db(target)
    async with AsyncSession(target) as session:
        await seeder.seed_database(session, data_dir)
        dataset = await dataset_loader.load_dataset(session)
    catalog = Catalog(dataset)
    logger.info(f"Catalog ready: {len(catalog.chains.chains())} evolution chains.")
    return catalog
