# In coromondex/services/seeder.py
"""
Loads the bundled static game data into an empty database.

Seed files live in ``coromondex/data`` and reference each other by name,
the same way the original SQL seed resolved ids with sub-selects. The core
files (types, coromon, type effectiveness, evolutions, traits) are always
required; trait versions, coromon traits and skills are seeded only when
their files exist.
"""

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..config import DATA_DIR
from ..exceptions import SeedDataError
from ..models.pydantic_models import SeedReport, SkillEffectKind, StatType, TraitKind
from . import database_client as db

logger = logging.getLogger(__name__)


def _read(data_dir: Path, filename: str, required: bool = True) -> Optional[List]:
    path = data_dir / filename
    if not path.exists():
        if required:
            raise FileNotFoundError(f"Seed file missing: {path}")
        logger.debug(f"Optional seed file {filename} not found, skipping.")
        return None
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def _lookup(ids: Dict[str, int], name: Optional[str], filename: str, kind: str) -> Optional[int]:
    if name is None:
        return None
    try:
        return ids[name]
    except KeyError:
        raise SeedDataError(filename, name, kind) from None


async def seed_database(session: AsyncSession, data_dir: Path = DATA_DIR) -> SeedReport:
    """Seeds every table from ``data_dir``. Does nothing if types already exist."""
    result = await session.exec(select(db.Type))
    if result.first():
        logger.info("Database already seeded, skipping.")
        return SeedReport(skipped=True)

    try:
        counts = await _seed_all(session, Path(data_dir))
    except Exception:
        await session.rollback()
        raise
    await session.commit()
    logger.info("Seeded database: " + ", ".join(f"{k}={v}" for k, v in counts.items()))
    return SeedReport(counts=counts)


async def _seed_all(session: AsyncSession, data_dir: Path) -> Dict[str, int]:
    counts: Dict[str, int] = {}

    types = [db.Type(name=name) for name in _read(data_dir, "types.json")]
    session.add_all(types)
    await session.flush()
    type_ids = {t.name: t.type_id for t in types}
    counts["types"] = len(types)

    coromon_rows = _read(data_dir, "coromon.json")
    coromon = [
        db.Coromon(
            coro_id=row["coro_id"],
            name=row["name"],
            type_id=_lookup(type_ids, row["type"], "coromon.json", "type"),
            sp=row.get("sp", 34),
        )
        for row in coromon_rows
    ]
    session.add_all(coromon)
    await session.flush()
    coro_ids = {c.name: c.coro_id for c in coromon}
    counts["coromon"] = len(coromon)

    for row in coromon_rows:
        for stat_type, value in row.get("stats", {}).items():
            session.add(db.CoromonStat(coro_id=row["coro_id"], stat_type=StatType(stat_type), value=value))

    effectiveness = [
        db.TypeEffectiveness(
            attacking_type_id=_lookup(type_ids, row["attacking"], "type_effectiveness.json", "type"),
            defending_type_id=_lookup(type_ids, row["defending"], "type_effectiveness.json", "type"),
            multiplier=Decimal(row["multiplier"]),
        )
        for row in _read(data_dir, "type_effectiveness.json")
    ]
    session.add_all(effectiveness)
    counts["type_effectiveness"] = len(effectiveness)

    evolutions = [
        db.CoromonEvolution(
            coro_id=_lookup(coro_ids, row["coromon"], "evolutions.json", "coromon"),
            pre_evo_coro_id=_lookup(coro_ids, row["pre_evo"], "evolutions.json", "coromon"),
            next_evo_coro_id=_lookup(coro_ids, row["next_evo"], "evolutions.json", "coromon"),
            condition_to_evolve=row.get("condition"),
        )
        for row in _read(data_dir, "evolutions.json")
    ]
    session.add_all(evolutions)
    counts["coromon_evolutions"] = len(evolutions)

    traits = [db.Trait(name=row["name"], type=TraitKind(row["type"])) for row in _read(data_dir, "traits.json")]
    session.add_all(traits)
    await session.flush()
    # Trait names are not unique in the schema; the first one seeded wins
    trait_ids: Dict[str, int] = {}
    for t in traits:
        trait_ids.setdefault(t.name, t.trait_id)
    counts["traits"] = len(traits)

    counts.update(await _seed_trait_data(session, data_dir, trait_ids, coro_ids))
    counts.update(await _seed_skills(session, data_dir, type_ids, coro_ids))

    await session.flush()
    return counts


async def _seed_trait_data(session: AsyncSession, data_dir: Path, trait_ids: Dict[str, int], coro_ids: Dict[str, int]) -> Dict[str, int]:
    counts = {}
    version_ids: Dict[tuple, int] = {}

    version_rows = _read(data_dir, "trait_versions.json", required=False)
    if version_rows is not None:
        versions = [
            db.TraitVersion(
                trait_id=_lookup(trait_ids, row["trait"], "trait_versions.json", "trait"),
                plus=row.get("plus", 0),
                description=row["description"],
            )
            for row in version_rows
        ]
        session.add_all(versions)
        await session.flush()
        version_ids = {(v.trait_id, v.plus): v.trait_version_id for v in versions}
        counts["trait_versions"] = len(versions)

    trait_rows = _read(data_dir, "coromon_traits.json", required=False)
    if trait_rows is not None:
        for row in trait_rows:
            trait_id = _lookup(trait_ids, row["trait"], "coromon_traits.json", "trait")
            plus = row.get("plus")
            session.add(db.CoromonTrait(
                trait_id=trait_id,
                coro_id=_lookup(coro_ids, row["coromon"], "coromon_traits.json", "coromon"),
                trait_version_id=version_ids.get((trait_id, plus)) if plus is not None else None,
                chance=Decimal(str(row["chance"])),
            ))
        counts["coromon_traits"] = len(trait_rows)

    return counts


async def _seed_skills(session: AsyncSession, data_dir: Path, type_ids: Dict[str, int], coro_ids: Dict[str, int]) -> Dict[str, int]:
    skill_rows = _read(data_dir, "skills.json", required=False)
    if skill_rows is None:
        return {}

    effect_types: Dict[str, db.SkillEffectType] = {}
    effect_count = 0
    for row in skill_rows:
        skill = db.Skill(
            name=row["name"],
            type_id=_lookup(type_ids, row["type"], "skills.json", "type"),
            skill_power=row.get("power"),
            accuracy=Decimal(str(row.get("accuracy", 100))),
        )
        session.add(skill)
        await session.flush()

        for effect in row.get("effects", []):
            effect_type = effect_types.get(effect["effect"])
            if effect_type is None:
                effect_type = db.SkillEffectType(name=effect["effect"], type=SkillEffectKind(effect.get("kind", "Damage")))
                session.add(effect_type)
                await session.flush()
                effect_types[effect["effect"]] = effect_type
            session.add(db.SkillEffect(
                skill_id=skill.skill_id,
                skill_effect_type_id=effect_type.skill_effect_type_id,
                value=Decimal(str(effect["value"])),
                chance=Decimal(str(effect.get("chance", "1.00"))),
                is_primary=effect.get("is_primary", True),
            ))
            effect_count += 1

        for learner in row.get("learned_by", []):
            session.add(db.CoromonSkill(
                coro_id=_lookup(coro_ids, learner["coromon"], "skills.json", "coromon"),
                skill_id=skill.skill_id,
                learn_level=learner.get("level"),
            ))

    return {"skills": len(skill_rows), "skill_effect_types": len(effect_types), "skill_effects": effect_count}
