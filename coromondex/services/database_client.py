# In coromondex/services/database_client.py

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import CheckConstraint, Column, Enum, Index
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import Field, Relationship, SQLModel

from ..config import DATABASE_URL, SQL_ECHO
from ..models.pydantic_models import EffectKind, SkillEffectKind, StatType, TraitKind

def _enum_column(enum_cls, name: str, **kwargs) -> Column:
    # Store the enum values ("Special_Attack"), not the member names
    return Column(Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e]), **kwargs)

# --- Database Models ---

class Type(SQLModel, table=True):
    __tablename__ = "types"
    type_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=50)
    coromon: List["Coromon"] = Relationship(back_populates="type")

class Coromon(SQLModel, table=True):
    __tablename__ = "coromon"
    coro_id: int = Field(primary_key=True)
    name: str = Field(unique=True, index=True, max_length=255)
    type_id: int = Field(foreign_key="types.type_id", index=True)
    # Every coromon starts with 34 SP; Titans are seeded with 160
    sp: int = 34

    type: Optional[Type] = Relationship(back_populates="coromon")
    stats: List["CoromonStat"] = Relationship(back_populates="coromon", sa_relationship_kwargs={"cascade": "all, delete-orphan"})

class CoromonStat(SQLModel, table=True):
    __tablename__ = "coromon_stats"
    coro_id: int = Field(foreign_key="coromon.coro_id", primary_key=True)
    stat_type: StatType = Field(sa_column=_enum_column(StatType, "coromon_stats_stat_type", primary_key=True))
    value: int
    coromon: Optional[Coromon] = Relationship(back_populates="stats")

class TypeEffectiveness(SQLModel, table=True):
    __tablename__ = "type_effectiveness"
    __table_args__ = (
        Index("idx_type_effectiveness_defending_attacking", "defending_type_id", "attacking_type_id"),
    )
    attacking_type_id: int = Field(foreign_key="types.type_id", primary_key=True)
    defending_type_id: int = Field(foreign_key="types.type_id", primary_key=True)
    multiplier: Decimal = Field(default=Decimal("1"), max_digits=4, decimal_places=2)

class CoromonEvolution(SQLModel, table=True):
    __tablename__ = "coromon_evolutions"
    coromon_evolution_id: Optional[int] = Field(default=None, primary_key=True)
    coro_id: int = Field(foreign_key="coromon.coro_id", index=True)
    pre_evo_coro_id: Optional[int] = Field(default=None, foreign_key="coromon.coro_id", index=True)
    next_evo_coro_id: Optional[int] = Field(default=None, foreign_key="coromon.coro_id", index=True)
    # e.g. "Level 20"; null when the coromon cannot evolve
    condition_to_evolve: Optional[str] = Field(default=None, max_length=255)

class Trait(SQLModel, table=True):
    __tablename__ = "traits"
    trait_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=255)
    type: TraitKind = Field(sa_column=_enum_column(TraitKind, "traits_type", nullable=False))

class TraitVersion(SQLModel, table=True):
    __tablename__ = "trait_versions"
    trait_version_id: Optional[int] = Field(default=None, primary_key=True)
    trait_id: int = Field(foreign_key="traits.trait_id", index=True)
    plus: int = 0
    description: str

class CoromonTrait(SQLModel, table=True):
    __tablename__ = "coromon_traits"
    __table_args__ = (
        Index("idx_coromon_traits_trait_coro_id", "trait_id", "coro_id"),
    )
    trait_id: int = Field(foreign_key="traits.trait_id", primary_key=True)
    coro_id: int = Field(foreign_key="coromon.coro_id", primary_key=True, index=True)
    trait_version_id: Optional[int] = Field(default=None, foreign_key="trait_versions.trait_version_id")
    chance: Decimal = Field(max_digits=6, decimal_places=4)

    trait: Optional[Trait] = Relationship()

class EffectType(SQLModel, table=True):
    __tablename__ = "effect_types"
    effect_type_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=255)
    type: EffectKind = Field(sa_column=_enum_column(EffectKind, "effect_types_type", nullable=False))
    self_inflicted: bool = False

class TraitVersionEffect(SQLModel, table=True):
    __tablename__ = "trait_version_effects"
    trait_version_effect_id: Optional[int] = Field(default=None, primary_key=True)
    trait_version_id: int = Field(foreign_key="trait_versions.trait_version_id")
    effect_type_id: int = Field(foreign_key="effect_types.effect_type_id")
    value: Decimal = Field(max_digits=8, decimal_places=2)

class Skill(SQLModel, table=True):
    __tablename__ = "skills"
    skill_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=255)
    type_id: int = Field(foreign_key="types.type_id", index=True)
    skill_power: Optional[int] = Field(default=None, index=True)
    accuracy: Decimal = Field(default=Decimal("100"), max_digits=5, decimal_places=2)

    type: Optional[Type] = Relationship()
    effects: List["SkillEffect"] = Relationship(back_populates="skill")

class CoromonSkill(SQLModel, table=True):
    __tablename__ = "coromon_skills"
    __table_args__ = (
        CheckConstraint("learn_level BETWEEN 0 AND 99", name="ck_coromon_skills_learn_level"),
    )
    coro_id: int = Field(foreign_key="coromon.coro_id", primary_key=True, index=True)
    skill_id: int = Field(foreign_key="skills.skill_id", primary_key=True, index=True)
    learn_level: Optional[int] = None

class SkillEffectType(SQLModel, table=True):
    __tablename__ = "skill_effect_types"
    skill_effect_type_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=100)
    type: SkillEffectKind = Field(
        default=SkillEffectKind.DAMAGE,
        sa_column=_enum_column(SkillEffectKind, "skill_effect_types_type", nullable=False),
    )

class SkillEffect(SQLModel, table=True):
    __tablename__ = "skill_effects"
    skill_effect_id: Optional[int] = Field(default=None, primary_key=True)
    skill_id: int = Field(foreign_key="skills.skill_id")
    skill_effect_type_id: int = Field(foreign_key="skill_effect_types.skill_effect_type_id")
    value: Decimal = Field(max_digits=8, decimal_places=2)
    chance: Decimal = Field(default=Decimal("1.00"), max_digits=5, decimal_places=4)
    is_primary: bool = True

    skill: Optional[Skill] = Relationship(back_populates="effects")
    effect_type: Optional[SkillEffectType] = Relationship()


# --- Database Engine and Setup ---

def make_engine(url: str = DATABASE_URL) -> AsyncEngine:
    return create_async_engine(url, echo=SQL_ECHO)

engine = make_engine()

async def init_db(target: Optional[AsyncEngine] = None):
    async with (target or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
