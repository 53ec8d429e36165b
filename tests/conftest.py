"""Shared fixtures for the Coromondex test suite.

Chain and trait fixtures use the Cubzero line from the real seed data.
Database fixtures create a fresh SQLite file per test through aiosqlite.
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from coromondex.models.pydantic_models import EvolutionLink, SpeciesTrait, TraitVersionInfo
from coromondex.services import database_client
from coromondex.services.evolution_chains import build_chains

CUBZERO, AROARA, BEAREALIS = 1, 2, 3
TORUGA, EMBAVAL, VOLCADON = 4, 5, 6
HOUNDOS, HOUNTRION = 18, 19
CHALCHIU, DARK_FORM_CHALCHIU = 1005, 1006

NAMES = {
    CUBZERO: "Cubzero", AROARA: "Aroara", BEAREALIS: "Bearealis",
    TORUGA: "Toruga", EMBAVAL: "Embaval", VOLCADON: "Volcadon",
    HOUNDOS: "Houndos", HOUNTRION: "Hountrion",
    CHALCHIU: "Chalchiu", DARK_FORM_CHALCHIU: "Dark Form Chalchiu",
}


def link(coro_id, pre=None, nxt=None, condition=None):
    return EvolutionLink(coro_id=coro_id, pre_evo_coro_id=pre, next_evo_coro_id=nxt, condition=condition)


def trait(coro_id, trait_id, name, chance, version=None):
    return SpeciesTrait(coro_id=coro_id, trait_id=trait_id, trait_name=name, chance=Decimal(str(chance)), trait_version_id=version)


# =============================================================================
# CHAIN FIXTURES
# =============================================================================

@pytest.fixture
def seed_links():
    """Two 3-stage lines, one 2-stage line and a Titan pair, as seeded."""
    return [
        link(CUBZERO, None, AROARA, "Level 16"),
        link(AROARA, CUBZERO, BEAREALIS, "Level 34"),
        link(BEAREALIS, AROARA, None),
        link(TORUGA, None, EMBAVAL, "Level 16"),
        link(EMBAVAL, TORUGA, VOLCADON, "Level 36"),
        link(VOLCADON, EMBAVAL, None),
        link(HOUNDOS, None, HOUNTRION, "Level 34"),
        link(HOUNTRION, HOUNDOS, None),
        link(CHALCHIU, None, DARK_FORM_CHALCHIU, "Reach 50% Health"),
        link(DARK_FORM_CHALCHIU, CHALCHIU, None),
    ]


@pytest.fixture
def chain_index(seed_links):
    return build_chains(seed_links, names=NAMES)


# =============================================================================
# TRAIT FIXTURES
# =============================================================================

@pytest.fixture
def terminus_traits():
    """Bearealis carries A and B; its pre-evolutions carry nothing."""
    return [
        trait(BEAREALIS, 10, "Antarctic", "0.3"),
        trait(BEAREALIS, 11, "Frost Layer", "0.2"),
    ]


@pytest.fixture
def trait_versions():
    return [
        TraitVersionInfo(trait_version_id=1, trait_id=10, plus=0, description="Ice skills deal 10% more damage."),
        TraitVersionInfo(trait_version_id=2, trait_id=10, plus=1, description="Ice skills deal 15% more damage."),
        TraitVersionInfo(trait_version_id=3, trait_id=10, plus=2, description="Ice skills deal 20% more damage."),
    ]


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
async def engine(tmp_path):
    engine = database_client.make_engine(f"sqlite+aiosqlite:///{tmp_path / 'coromon.db'}")
    await database_client.init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with AsyncSession(engine) as session:
        yield session
