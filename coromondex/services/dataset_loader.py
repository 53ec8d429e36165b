# In coromondex/services/dataset_loader.py

import logging
from collections import Counter
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..exceptions import DatasetIntegrityError
from ..models.pydantic_models import (
    Dataset,
    EvolutionLink,
    SkillInfo,
    Species,
    SpeciesTrait,
    TraitInfo,
    TraitVersionInfo,
    TypeInfo,
    TypeMultiplier,
)
from . import database_client as db

logger = logging.getLogger(__name__)


def _snapshot(model: Type[BaseModel], label: str, problems: List[str], **fields) -> Optional[BaseModel]:
    # A row breaking a model constraint is reported like any other integrity problem
    try:
        return model(**fields)
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(part) for part in err["loc"])
            problems.append(f"{label}: {field}: {err['msg']}")
        return None


async def load_dataset(session: AsyncSession) -> Dataset:
    """
    Reads every table into an immutable Dataset snapshot.

    Fails fast with DatasetIntegrityError on duplicate names, references
    to rows that do not exist, or values outside a model's constraints
    (a trait chance of 0, a negative plus). Every problem is collected before
    raising; the resolution code never sees partial data.
    """
    types = (await session.exec(select(db.Type).order_by(db.Type.type_id))).all()
    type_names = {t.type_id: t.name for t in types}
    problems: List[str] = []

    coromon = (await session.exec(
        select(db.Coromon)
        .order_by(db.Coromon.coro_id)
        .options(selectinload(db.Coromon.stats))
    )).all()
    for name, count in Counter(c.name for c in coromon).items():
        if count > 1:
            problems.append(f"duplicate coromon name '{name}'")
    species = []
    for c in coromon:
        if c.type_id not in type_names:
            problems.append(f"coromon {c.coro_id} references unknown type {c.type_id}")
            continue
        item = _snapshot(
            Species, f"coromon {c.coro_id}", problems,
            coro_id=c.coro_id,
            name=c.name,
            type_name=type_names[c.type_id],
            sp=c.sp,
            stats={s.stat_type: s.value for s in c.stats},
        )
        if item is not None:
            species.append(item)
    coro_ids = {c.coro_id for c in coromon}

    evolutions = []
    rows = (await session.exec(select(db.CoromonEvolution).order_by(db.CoromonEvolution.coromon_evolution_id))).all()
    for row in rows:
        for ref in (row.coro_id, row.pre_evo_coro_id, row.next_evo_coro_id):
            if ref is not None and ref not in coro_ids:
                problems.append(f"evolution row {row.coromon_evolution_id} references unknown coromon {ref}")
        item = _snapshot(
            EvolutionLink, f"evolution row {row.coromon_evolution_id}", problems,
            coro_id=row.coro_id,
            pre_evo_coro_id=row.pre_evo_coro_id,
            next_evo_coro_id=row.next_evo_coro_id,
            condition=row.condition_to_evolve,
        )
        if item is not None:
            evolutions.append(item)

    multipliers = []
    for row in (await session.exec(select(db.TypeEffectiveness))).all():
        label = f"type effectiveness row ({row.attacking_type_id}, {row.defending_type_id})"
        if row.attacking_type_id not in type_names or row.defending_type_id not in type_names:
            problems.append(f"{label} references unknown type")
            continue
        item = _snapshot(
            TypeMultiplier, label, problems,
            attacking=type_names[row.attacking_type_id],
            defending=type_names[row.defending_type_id],
            multiplier=row.multiplier,
        )
        if item is not None:
            multipliers.append(item)

    traits = []
    for t in (await session.exec(select(db.Trait).order_by(db.Trait.trait_id))).all():
        item = _snapshot(TraitInfo, f"trait {t.trait_id}", problems, trait_id=t.trait_id, name=t.name, kind=t.type)
        if item is not None:
            traits.append(item)
    trait_names: Dict[int, str] = {t.trait_id: t.name for t in traits}

    versions = []
    for v in (await session.exec(select(db.TraitVersion).order_by(db.TraitVersion.trait_version_id))).all():
        if v.trait_id not in trait_names:
            problems.append(f"trait version {v.trait_version_id} references unknown trait {v.trait_id}")
            continue
        item = _snapshot(
            TraitVersionInfo, f"trait version {v.trait_version_id}", problems,
            trait_version_id=v.trait_version_id, trait_id=v.trait_id, plus=v.plus, description=v.description,
        )
        if item is not None:
            versions.append(item)
    version_ids = {v.trait_version_id for v in versions}

    species_traits = []
    for ct in (await session.exec(select(db.CoromonTrait).order_by(db.CoromonTrait.coro_id, db.CoromonTrait.trait_id))).all():
        if ct.coro_id not in coro_ids:
            problems.append(f"coromon trait references unknown coromon {ct.coro_id}")
            continue
        if ct.trait_id not in trait_names:
            problems.append(f"coromon {ct.coro_id} references unknown trait {ct.trait_id}")
            continue
        if ct.trait_version_id is not None and ct.trait_version_id not in version_ids:
            problems.append(f"coromon {ct.coro_id} references unknown trait version {ct.trait_version_id}")
            continue
        item = _snapshot(
            SpeciesTrait, f"coromon {ct.coro_id} trait {ct.trait_id}", problems,
            coro_id=ct.coro_id,
            trait_id=ct.trait_id,
            trait_name=trait_names[ct.trait_id],
            chance=ct.chance,
            trait_version_id=ct.trait_version_id,
        )
        if item is not None:
            species_traits.append(item)

    skills = []
    skill_rows = (await session.exec(
        select(db.Skill)
        .order_by(db.Skill.skill_id)
        .options(selectinload(db.Skill.effects).selectinload(db.SkillEffect.effect_type))
    )).all()
    for s in skill_rows:
        if s.type_id not in type_names:
            problems.append(f"skill '{s.name}' references unknown type {s.type_id}")
            continue
        if any(e.effect_type is None for e in s.effects):
            problems.append(f"skill '{s.name}' has an effect with an unknown effect type")
            continue
        item = _snapshot(
            SkillInfo, f"skill '{s.name}'", problems,
            skill_id=s.skill_id,
            name=s.name,
            type_name=type_names[s.type_id],
            power=s.skill_power,
            accuracy=s.accuracy,
            effects=[
                {
                    "effect_name": e.effect_type.name,
                    "kind": e.effect_type.type,
                    "value": e.value,
                    "chance": e.chance,
                    "is_primary": e.is_primary,
                }
                for e in s.effects
            ],
        )
        if item is not None:
            skills.append(item)

    if problems:
        for problem in problems:
            logger.error(f"Dataset integrity: {problem}")
        raise DatasetIntegrityError(problems)

    logger.info(
        f"Loaded dataset: {len(species)} coromon, {len(types)} types, {len(evolutions)} evolution rows, "
        f"{len(traits)} traits, {len(species_traits)} coromon traits, {len(skills)} skills"
    )
    return Dataset(
        types=[TypeInfo(type_id=t.type_id, name=t.name) for t in types],
        species=species,
        evolutions=evolutions,
        type_multipliers=multipliers,
        traits=traits,
        trait_versions=versions,
        species_traits=species_traits,
        skills=skills,
    )
