"""Seed the bundled data into SQLite and resolve through the full stack."""

import json
import shutil
from decimal import Decimal

import pytest
from sqlmodel import select

from coromondex.config import DATA_DIR
from coromondex.exceptions import DatasetIntegrityError, SeedDataError, UnknownSpeciesError, UnknownTypeError
from coromondex.models.pydantic_models import NO_TRAITS_AVAILABLE, SkillEffectKind
from coromondex.services import database_client as db
from coromondex.services.catalog import load_catalog
from coromondex.services.dataset_loader import load_dataset
from coromondex.services.seeder import seed_database


def _write(path, rows):
    path.write_text(json.dumps(rows), encoding="utf-8")


@pytest.fixture
def data_dir(tmp_path):
    target = tmp_path / "data"
    shutil.copytree(DATA_DIR, target)
    return target


@pytest.fixture
def data_dir_with_traits(data_dir):
    _write(data_dir / "trait_versions.json", [
        {"trait": "Antarctic", "plus": 0, "description": "Ice skills deal 10% more damage."},
        {"trait": "Antarctic", "plus": 1, "description": "Ice skills deal 15% more damage."},
        {"trait": "Antarctic", "plus": 2, "description": "Ice skills deal 20% more damage."},
    ])
    _write(data_dir / "coromon_traits.json", [
        {"coromon": "Bearealis", "trait": "Antarctic", "chance": "0.3", "plus": 0},
        {"coromon": "Bearealis", "trait": "Frost Layer", "chance": "0.2"},
    ])
    return data_dir


class TestSeeder:
    async def test_seeds_bundled_data(self, session):
        report = await seed_database(session)
        assert report.skipped is False
        assert report.counts == {
            "types": 14,
            "coromon": 131,
            "type_effectiveness": 112,
            "coromon_evolutions": 131,
            "traits": 116,
        }

    async def test_second_seed_is_skipped(self, session):
        await seed_database(session)
        report = await seed_database(session)
        assert report.skipped is True
        assert report.counts == {}

    async def test_optional_files_are_counted(self, session, data_dir_with_traits):
        report = await seed_database(session, data_dir_with_traits)
        assert report.counts["trait_versions"] == 3
        assert report.counts["coromon_traits"] == 2

    async def test_unknown_reference_rolls_back(self, session, data_dir):
        _write(data_dir / "coromon_traits.json", [{"coromon": "Cubzero", "trait": "Not A Trait", "chance": "0.5"}])
        with pytest.raises(SeedDataError) as exc:
            await seed_database(session, data_dir)
        assert exc.value.reference == "Not A Trait"
        assert (await session.exec(select(db.Type))).first() is None


class TestDatasetLoader:
    async def test_loads_every_species(self, session):
        await seed_database(session)
        dataset = await load_dataset(session)
        assert len(dataset.species) == 131
        assert len(dataset.type_multipliers) == 112
        assert dataset.species_by_name("cubzero").coro_id == 1
        assert dataset.species_by_id(1005).sp == 160
        assert dataset.species_by_id(1005).is_titan

    async def test_loads_skills_with_effects(self, session, data_dir):
        _write(data_dir / "skills.json", [{
            "name": "Ice Punch",
            "type": "Ice",
            "power": 40,
            "accuracy": 95,
            "effects": [{"effect": "Physical Damage", "kind": "Damage", "value": 40}],
            "learned_by": [{"coromon": "Cubzero", "level": 1}],
        }])
        report = await seed_database(session, data_dir)
        assert report.counts["skills"] == 1
        assert report.counts["skill_effects"] == 1

        dataset = await load_dataset(session)
        skill = dataset.skills[0]
        assert skill.type_name == "Ice"
        assert skill.power == 40
        assert skill.effects[0].effect_name == "Physical Damage"
        assert skill.effects[0].kind == SkillEffectKind.DAMAGE

    async def test_dangling_trait_reference_fails(self, session):
        await seed_database(session)
        session.add(db.CoromonTrait(trait_id=9999, coro_id=1, chance=Decimal("0.5")))
        await session.commit()
        with pytest.raises(DatasetIntegrityError) as exc:
            await load_dataset(session)
        assert any("9999" in problem for problem in exc.value.problems)

    async def test_out_of_range_values_are_integrity_problems(self, session):
        await seed_database(session)
        session.add(db.CoromonTrait(trait_id=1, coro_id=1, chance=Decimal("0")))
        session.add(db.TraitVersion(trait_id=1, plus=-1, description="Never reached."))
        await session.commit()
        with pytest.raises(DatasetIntegrityError) as exc:
            await load_dataset(session)
        problems = exc.value.problems
        # Both rows are reported together
        assert any(p.startswith("coromon 1 trait 1: chance") for p in problems)
        assert any(p.startswith("trait version") and ": plus:" in p for p in problems)


class TestCatalog:
    async def test_chains_and_lines(self, engine):
        catalog = await load_catalog(engine)
        # 50 evolving lines plus 7 single-stage Titans
        assert len(catalog.chains.chains()) == 57
        lines = catalog.evolution_lines()
        assert len(lines) == 50
        assert lines[0] == {"base_coro_id": 1, "evolution_line": "Cubzero -> Aroara -> Bearealis"}

    async def test_tiers(self, engine):
        catalog = await load_catalog(engine)
        assert catalog.resolve("Cubzero").plus == 2
        assert catalog.resolve("aroara").plus == 1
        assert catalog.resolve(3).plus == 0

    async def test_titans_never_chain(self, engine):
        catalog = await load_catalog(engine)
        for name in ("Chalchiu", "Dark Form Chalchiu"):
            resolved = catalog.resolve(name)
            assert resolved.plus == 0
            assert resolved.chain_length == 1

    async def test_traits_report_without_trait_rows(self, engine):
        catalog = await load_catalog(engine)
        report = catalog.traits_report()
        assert len(report) == 131
        assert {row["traits"] for row in report} == {NO_TRAITS_AVAILABLE}

    async def test_type_matchup(self, engine):
        catalog = await load_catalog(engine)
        assert catalog.type_matchup("electric", ["Water"]) == {
            "attacking": "Electric",
            "defending": ["Water"],
            "multiplier": "2.0",
        }
        assert catalog.type_matchup("Fire", ["Magic"])["multiplier"] == "1.0"

    async def test_unknown_coromon(self, engine):
        catalog = await load_catalog(engine)
        with pytest.raises(UnknownSpeciesError):
            catalog.find("Missingmon")
        with pytest.raises(UnknownSpeciesError):
            catalog.resolve("404")
        with pytest.raises(UnknownSpeciesError):
            catalog.describe("Missingmon")

    async def test_bool_is_not_an_id(self, engine):
        catalog = await load_catalog(engine)
        for value in (True, False, None, ["Cubzero"]):
            with pytest.raises(UnknownSpeciesError):
                catalog.find(value)

    async def test_unknown_type_in_matchup(self, engine):
        catalog = await load_catalog(engine)
        with pytest.raises(UnknownTypeError):
            catalog.type_matchup("Grass", ["Water"])
        with pytest.raises(UnknownTypeError):
            catalog.type_matchup("Electric", ["Water", "Grass"])
        with pytest.raises(UnknownTypeError):
            catalog.type_matchup("Electric", [3])

    async def test_describe(self, engine):
        catalog = await load_catalog(engine)
        info = catalog.describe("cubzero")
        assert info["id"] == 1
        assert info["type"] == "Ice"
        assert info["titan"] is False
        assert info["evolution"] == {
            "line": ["Cubzero", "Aroara", "Bearealis"],
            "position": 1,
            "length": 3,
            "next": {"name": "Aroara", "condition": "Level 16"},
        }
        assert info["plus"] == 2
        assert info["traits"] == NO_TRAITS_AVAILABLE
        assert catalog.describe("Bearealis")["evolution"]["next"] is None

    async def test_fallback_through_database(self, engine, data_dir_with_traits):
        catalog = await load_catalog(engine, data_dir_with_traits)
        cubzero = catalog.resolve("Cubzero")
        assert cubzero.inherited_from == 3
        assert cubzero.display() == "Antarctic (30%), Frost Layer (20%)"
        assert cubzero.traits[0].description == "Ice skills deal 20% more damage."
        assert catalog.resolve("Bearealis").traits[0].description == "Ice skills deal 10% more damage."

    async def test_every_species_in_a_supported_chain(self, engine):
        catalog = await load_catalog(engine)
        regular = [sid for sid in catalog.chains if sid <= 999]
        assert len(regular) == 124
        for sid in catalog.chains:
            entry = catalog.chains.entry(sid)
            assert 1 <= entry.length <= (3 if sid <= 999 else 1)
