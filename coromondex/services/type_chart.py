# In coromondex/services/type_chart.py

from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from ..exceptions import UnknownTypeError
from ..models.pydantic_models import Dataset, Matchup, TypeMultiplier

NEUTRAL = Decimal("1.0")


def format_multiplier(value: Decimal) -> str:
    """Renders 2.00 or 2.000 as "2.0" and 0.2500 as "0.25"."""
    text = f"{value.normalize():f}"
    return text if "." in text else text + ".0"


class TypeChart:
    """
    Attacking/defending multipliers between Coromon types.

    The seed data only lists some defending types, so any pair that is not
    in the chart is neutral (1.0). Type names are matched case-insensitively.
    """

    def __init__(self, rows: Iterable[TypeMultiplier], type_names: Iterable[str] = ()):
        self._multipliers: Dict[Tuple[str, str], Decimal] = {}
        self._names: Dict[str, str] = {}
        self._attackers: List[str] = []
        for name in type_names:
            self._names.setdefault(name.casefold(), name)
        for row in rows:
            self._multipliers[(row.attacking, row.defending)] = row.multiplier
            self._names.setdefault(row.attacking.casefold(), row.attacking)
            self._names.setdefault(row.defending.casefold(), row.defending)
            if row.attacking not in self._attackers:
                self._attackers.append(row.attacking)

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> "TypeChart":
        return cls(dataset.type_multipliers, [t.name for t in dataset.types])

    def canonical(self, type_name: str) -> str:
        if not isinstance(type_name, str):
            raise UnknownTypeError(type_name)
        try:
            return self._names[type_name.strip().casefold()]
        except KeyError:
            raise UnknownTypeError(type_name) from None

    def attacking_types(self) -> List[str]:
        return list(self._attackers)

    def multiplier(self, attacking: str, defending: str) -> Decimal:
        key = (self.canonical(attacking), self.canonical(defending))
        return self._multipliers.get(key, NEUTRAL)

    def combined(self, attacking: str, defending_types: Iterable[str]) -> Decimal:
        effectiveness = NEUTRAL
        for def_type in defending_types:
            effectiveness *= self.multiplier(attacking, def_type)
        return effectiveness

    def matchups(self, defending: str) -> Matchup:
        defending = self.canonical(defending)
        weak_to, resists, neutral = [], [], []
        for attacking in self._attackers:
            value = self.multiplier(attacking, defending)
            if value > NEUTRAL:
                weak_to.append(attacking)
            elif value < NEUTRAL:
                resists.append(attacking)
            else:
                neutral.append(attacking)
        return Matchup(defending=defending, weak_to=weak_to, resists=resists, neutral=neutral)
