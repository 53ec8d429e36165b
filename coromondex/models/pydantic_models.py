import enum
from decimal import Decimal
from typing import Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..config import MAX_CHAIN_SPECIES_ID

NO_TRAITS_AVAILABLE = "No Traits Available"


class TraitKind(str, enum.Enum):
    PASSIVE = "Passive"
    ACTIVE = "Active"


class StatType(str, enum.Enum):
    HP = "HP"
    SPEED = "Speed"
    DEFENSE = "Defense"
    SPECIAL_ATTACK = "Special_Attack"
    SPECIAL_DEFENSE = "Special_Defense"


class EffectKind(str, enum.Enum):
    STATUS = "Status"
    STAT_POSITIVE = "Stat_Positive"
    STAT_NEGATIVE = "Stat_Negative"


class SkillEffectKind(str, enum.Enum):
    STATUS = "Status"
    DAMAGE = "Damage"
    STAT_POSITIVE = "Stat_Positive"
    STAT_NEGATIVE = "Stat_Negative"


class _Snapshot(BaseModel):
    """Read-only reference data; instances never change once loaded."""
    model_config = ConfigDict(frozen=True)


# --- Dataset Entities ---

class TypeInfo(_Snapshot):
    """A Coromon type (e.g. 'Fire', 'Crimsonite')."""
    type_id: int
    name: str


class Species(_Snapshot):
    """A single Coromon species with its base stats."""
    coro_id: int
    name: str
    type_name: str = Field(..., description="The primary type of the Coromon.")
    sp: int = Field(34, description="The base SP stat.")
    stats: Dict[StatType, int] = Field(default_factory=dict, description="Other base stats keyed by stat kind.")

    @property
    def is_titan(self) -> bool:
        return self.coro_id > MAX_CHAIN_SPECIES_ID


class EvolutionLink(_Snapshot):
    """One evolution row: the species plus its optional neighbours in the chain."""
    coro_id: int
    pre_evo_coro_id: Optional[int] = None
    next_evo_coro_id: Optional[int] = None
    condition: Optional[str] = Field(None, description="Free-text evolution condition, e.g. 'Level 16'.")


class TypeMultiplier(_Snapshot):
    attacking: str
    defending: str
    multiplier: Decimal = Decimal("1.0")


class TraitInfo(_Snapshot):
    trait_id: int
    name: str
    kind: TraitKind


class TraitVersionInfo(_Snapshot):
    """The description of a trait at a given 'plus' tier."""
    trait_version_id: int
    trait_id: int
    plus: int = Field(0, ge=0)
    description: str


class SpeciesTrait(_Snapshot):
    """A trait a species can manifest, with its probability of manifestation."""
    coro_id: int
    trait_id: int
    trait_name: str
    chance: Decimal = Field(..., gt=0, le=1)
    trait_version_id: Optional[int] = None


class SkillEffectInfo(_Snapshot):
    effect_name: str
    kind: SkillEffectKind
    value: Decimal
    chance: Decimal = Decimal("1.00")
    is_primary: bool = True


class SkillInfo(_Snapshot):
    skill_id: int
    name: str
    type_name: str
    power: Optional[int] = Field(None, description="The power of the skill. None for status skills.")
    accuracy: Decimal = Decimal("100")
    effects: Tuple[SkillEffectInfo, ...] = ()


class Dataset(BaseModel):
    """
    The fully materialized static dataset, as produced by the dataset loader.

    Lookup indexes are built once when the snapshot is created; the
    collections themselves are never mutated afterwards.
    """
    types: List[TypeInfo] = Field(default_factory=list)
    species: List[Species] = Field(default_factory=list)
    evolutions: List[EvolutionLink] = Field(default_factory=list)
    type_multipliers: List[TypeMultiplier] = Field(default_factory=list)
    traits: List[TraitInfo] = Field(default_factory=list)
    trait_versions: List[TraitVersionInfo] = Field(default_factory=list)
    species_traits: List[SpeciesTrait] = Field(default_factory=list)
    skills: List[SkillInfo] = Field(default_factory=list)

    _by_id: Dict[int, Species] = PrivateAttr(default_factory=dict)
    _by_name: Dict[str, Species] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        self._by_id = {s.coro_id: s for s in self.species}
        self._by_name = {s.name.casefold(): s for s in self.species}

    def species_by_id(self, coro_id: int) -> Optional[Species]:
        return self._by_id.get(coro_id)

    def species_by_name(self, name: str) -> Optional[Species]:
        """Case-insensitive, otherwise exact, name lookup."""
        return self._by_name.get(name.strip().casefold())

    def names(self) -> Dict[int, str]:
        return {s.coro_id: s.name for s in self.species}


# --- Resolution Results ---

class ChainEntry(_Snapshot):
    """Where a species sits in its evolution chain."""
    species_id: int
    root_id: int = Field(..., description="The id of the chain's base form.")
    position: int = Field(..., ge=1, description="1-based position within the chain.")
    length: int = Field(..., ge=1)
    line: Tuple[str, ...] = Field(..., description="Species names in the chain, base form first.")

    @property
    def name(self) -> str:
        return self.line[self.position - 1]

    @property
    def is_terminus(self) -> bool:
        return self.position == self.length


class ResolvedTrait(_Snapshot):
    name: str
    chance: Decimal = Field(..., description="Probability of manifestation at full precision.")
    percent: int = Field(..., description="Chance rounded to a whole percent, for display only.")
    kind: Optional[TraitKind] = None
    description: Optional[str] = Field(None, description="The trait text at the species' plus tier, if known.")

    def display(self) -> str:
        return f"{self.name} ({self.percent}%)"


class ResolvedSpecies(_Snapshot):
    """The effective plus tier and trait list of a species."""
    species_id: int
    name: str
    plus: int
    chain_position: int
    chain_length: int
    traits: Union[Literal["No Traits Available"], List[ResolvedTrait]]
    inherited_from: Optional[int] = Field(None, description="Id of the final evolution the traits were taken from.")

    @property
    def has_traits(self) -> bool:
        return self.traits != NO_TRAITS_AVAILABLE

    def display(self) -> str:
        if not self.has_traits:
            return NO_TRAITS_AVAILABLE
        return ", ".join(t.display() for t in self.traits)


class Matchup(_Snapshot):
    """How every attacking type fares against one defending type."""
    defending: str
    weak_to: List[str] = Field(default_factory=list)
    resists: List[str] = Field(default_factory=list)
    neutral: List[str] = Field(default_factory=list)


class SeedReport(BaseModel):
    skipped: bool = False
    counts: Dict[str, int] = Field(default_factory=dict)
