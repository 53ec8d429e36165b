"""
Exception hierarchy for the Coromondex service layer.

Every error raised by chain building, trait resolution, type lookups,
seeding and dataset loading derives from CoromondexError, so callers can
catch all of them with a single except clause.

Usage:
    from coromondex.exceptions import UnknownSpeciesError

    try:
        resolved = resolve_species(chains, traits, species_id)
    except UnknownSpeciesError as e:
        logger.error(f"Lookup failed: {e}")
"""

from typing import Any, Iterable, Optional


class CoromondexError(Exception):
    """Base exception for all Coromondex errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Evolution chain errors
# =============================================================================

class MalformedChainError(CoromondexError):
    """
    Raised when evolution links do not form disjoint simple paths.

    This can occur when:
    - a chain loops back on itself (A -> B -> A)
    - a species is named as the successor of two different species
    - a species evolves into itself
    - a predecessor and successor reference disagree
    """

    def __init__(self, message: str, species_ids: Iterable[int] = ()):
        ids = sorted(set(species_ids))
        super().__init__(message, {"species": ids} if ids else None)
        self.species_ids = ids


class UnsupportedChainShape(CoromondexError):
    """Raised when no tier is defined for a chain length / position pair."""

    def __init__(self, length: int, position: int, root_id: Optional[int] = None):
        details: dict = {"length": length, "position": position}
        if root_id is not None:
            details["root"] = root_id
        super().__init__("No trait tier defined for this chain shape", details)
        self.length = length
        self.position = position
        self.root_id = root_id


# =============================================================================
# Lookup errors
# =============================================================================

class UnknownSpeciesError(CoromondexError):
    """Raised when a coromon id or name is not part of the dataset."""

    def __init__(self, species: Any):
        super().__init__(f"Coromon '{species}' not found")
        self.species = species


class UnknownTypeError(CoromondexError):
    """Raised when a type name is not part of the type chart."""

    def __init__(self, type_name: str):
        super().__init__(f"Type '{type_name}' not found")
        self.type_name = type_name


# =============================================================================
# Data errors
# =============================================================================

class DatasetIntegrityError(CoromondexError):
    """
    Raised by the dataset loader on schema violations.

    Duplicate unique keys and references to rows that do not exist are
    reported together, one entry per problem.
    """

    def __init__(self, problems: list):
        super().__init__(f"Dataset failed {len(problems)} integrity check(s)", {"problems": problems})
        self.problems = problems


class SeedDataError(CoromondexError):
    """Raised when a seed file references a name that was never seeded."""

    def __init__(self, source: str, reference: str, kind: str):
        super().__init__(f"Unknown {kind} '{reference}'", {"file": source})
        self.source = source
        self.reference = reference
        self.kind = kind
