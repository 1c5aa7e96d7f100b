"""Extracción canónica de votos por candidato.

Los datos de origen pueden traer los votos como número plano (``votes``),
como desglose (``voteComponents``) o con el campo heredado ``voteCount``.
La representación se resuelve una sola vez en una unión etiquetada y el
resto del motor sólo consulta ``total``.

English:
    Canonical per-candidate vote extraction. Source data may carry votes as a
    plain number (``votes``), a breakdown (``voteComponents``) or the legacy
    ``voteCount`` field. The representation is resolved once into a tagged
    union and the rest of the engine only reads ``total``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Mapping, Union

COMPONENT_FIELDS = ("testVotes", "realVotes", "bonusVotes")


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _as_count(value: Union[int, float]) -> Union[int, float]:
    """Convierte floats enteros a int; deja el resto intacto para validar.

    English: Turn integral floats into ints; leave the rest for validation.
    """
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return int(value)
    return value


@dataclass(frozen=True)
class DirectVotes:
    """Votos como número plano (``votes``).

    English: Votes as a plain number.
    """

    value: Union[int, float]
    kind: str = "votes"

    @property
    def total(self) -> Union[int, float]:
        return _as_count(self.value)


@dataclass(frozen=True)
class ComponentVotes:
    """Votos desglosados en prueba, reales y bonificación.

    English: Votes split into test, real and bonus components.
    """

    test_votes: Union[int, float] = 0
    real_votes: Union[int, float] = 0
    bonus_votes: Union[int, float] = 0
    kind: str = "voteComponents"

    @property
    def total(self) -> Union[int, float]:
        return _as_count(self.test_votes + self.real_votes + self.bonus_votes)


@dataclass(frozen=True)
class LegacyVoteCount:
    """Campo heredado ``voteCount``.

    English: Legacy ``voteCount`` field.
    """

    value: Union[int, float]
    kind: str = "voteCount"

    @property
    def total(self) -> Union[int, float]:
        return _as_count(self.value)


@dataclass(frozen=True)
class NoVotes:
    """Candidato sin información de votos; aporta 0.

    English: Candidate without vote information; contributes 0.
    """

    kind: str = "none"

    @property
    def total(self) -> int:
        return 0


VoteRepresentation = Union[DirectVotes, ComponentVotes, LegacyVoteCount, NoVotes]


def resolve_votes(candidate: Mapping[str, Any]) -> VoteRepresentation:
    """Resuelve la representación de votos; el primer campo poblado gana.

    Orden: ``votes`` numérico, ``voteComponents``, ``voteCount`` numérico,
    y por defecto ninguno. Nunca lanza excepciones.

    English:
        Resolve the vote representation; first populated field wins. Order:
        numeric ``votes``, ``voteComponents``, numeric ``voteCount``, then
        none. Never raises.
    """
    if not isinstance(candidate, Mapping):
        return NoVotes()

    votes = candidate.get("votes")
    if _is_number(votes):
        return DirectVotes(votes)

    components = candidate.get("voteComponents")
    if isinstance(components, Mapping):
        values = [components.get(name) for name in COMPONENT_FIELDS]
        test_votes, real_votes, bonus_votes = (value if _is_number(value) else 0 for value in values)
        return ComponentVotes(test_votes, real_votes, bonus_votes)

    vote_count = candidate.get("voteCount")
    if _is_number(vote_count):
        return LegacyVoteCount(vote_count)

    return NoVotes()


def vote_count_of(candidate: Any) -> Union[int, float]:
    """Devuelve el conteo canónico de votos del candidato.

    Acepta un mapping crudo o un :class:`~conciliador.core.models.Candidate`.
    Para todo candidato bien formado el resultado es un ``int`` no negativo;
    valores negativos, no finitos o fraccionarios se devuelven tal cual para
    que el validador los rechace.

    English:
        Return the canonical vote count. Accepts a raw mapping or a
        ``Candidate``. Well-formed candidates yield a non-negative ``int``;
        negative, non-finite or fractional values pass through untouched so
        the validator can reject them.
    """
    representation = getattr(candidate, "representation", None)
    if representation is None:
        representation = resolve_votes(candidate)
    return representation.total
