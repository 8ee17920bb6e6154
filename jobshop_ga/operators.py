"""Genetic operators over start-time chromosomes.

Every operator finishes by loading its result into the solution template,
repairing it and extracting the repaired vector, so callers always receive
feasible chromosomes.
"""

import random
from typing import Optional, Sequence

from jobshop_ga.errors import MalformedOperatorInputError
from jobshop_ga.models import Chromosome
from jobshop_ga.template import SolutionTemplate

CROSSOVER_MODES = ("one_point", "two_point")
MIN_CROSSOVER_LENGTH = 3


def _repaired(
    template: SolutionTemplate,
    chromosome: Sequence[int],
    max_iterations: Optional[int] = None,
) -> Chromosome:
    template.load(chromosome)
    template.repair(max_iterations)
    return template.extract()


def _check_parents(parent_a: Sequence[int], parent_b: Sequence[int]) -> None:
    if len(parent_a) != len(parent_b):
        raise MalformedOperatorInputError(
            f"Parents differ in length: {len(parent_a)} != {len(parent_b)}"
        )
    if len(parent_a) < MIN_CROSSOVER_LENGTH:
        raise MalformedOperatorInputError(
            f"Crossover needs at least {MIN_CROSSOVER_LENGTH} genes, got {len(parent_a)}"
        )


def crossover_one_point(
    template: SolutionTemplate,
    parent_a: Sequence[int],
    parent_b: Sequence[int],
    rng: Optional[random.Random] = None,
    max_iterations: Optional[int] = None,
) -> tuple[Chromosome, Chromosome]:
    """Swap the prefixes before a random cut in ``[1, len - 2]``."""
    _check_parents(parent_a, parent_b)
    if rng is None:
        rng = random
    point = rng.randint(1, len(parent_a) - 2)
    child_a = list(parent_b[:point]) + list(parent_a[point:])
    child_b = list(parent_a[:point]) + list(parent_b[point:])
    return (
        _repaired(template, child_a, max_iterations),
        _repaired(template, child_b, max_iterations),
    )


def crossover_two_point(
    template: SolutionTemplate,
    parent_a: Sequence[int],
    parent_b: Sequence[int],
    rng: Optional[random.Random] = None,
    max_iterations: Optional[int] = None,
) -> tuple[Chromosome, Chromosome]:
    """Exchange the segment between two random cuts in ``[1, len - 2]``."""
    _check_parents(parent_a, parent_b)
    if rng is None:
        rng = random
    first = rng.randint(1, len(parent_a) - 2)
    second = rng.randint(1, len(parent_a) - 2)
    if first > second:
        first, second = second, first
    if first == second:
        second += 1
    child_a = list(parent_a[:first]) + list(parent_b[first:second]) + list(parent_a[second:])
    child_b = list(parent_b[:first]) + list(parent_a[first:second]) + list(parent_b[second:])
    return (
        _repaired(template, child_a, max_iterations),
        _repaired(template, child_b, max_iterations),
    )


def crossover(
    template: SolutionTemplate,
    parent_a: Sequence[int],
    parent_b: Sequence[int],
    mode: str = "one_point",
    rng: Optional[random.Random] = None,
    max_iterations: Optional[int] = None,
) -> tuple[Chromosome, Chromosome]:
    """Dispatch to the crossover named by ``mode``.

    Raises:
        ValueError: Unknown ``mode``.
        MalformedOperatorInputError: Parents of different length or shorter
            than three genes.
    """
    if mode == "one_point":
        return crossover_one_point(template, parent_a, parent_b, rng, max_iterations)
    if mode == "two_point":
        return crossover_two_point(template, parent_a, parent_b, rng, max_iterations)
    raise ValueError(f"Unknown crossover mode: {mode} (expected one of {CROSSOVER_MODES})")


def mutate(
    template: SolutionTemplate,
    chromosome: Sequence[int],
    rng: Optional[random.Random] = None,
    max_delta: int = 2,
    max_iterations: Optional[int] = None,
) -> Chromosome:
    """Nudge one random start time by ``[-max_delta, max_delta]`` and repair.

    A delta that would make the start time negative is applied with the
    opposite sign.
    """
    if not chromosome:
        raise MalformedOperatorInputError("Cannot mutate an empty chromosome")
    if len(chromosome) != len(template):
        raise MalformedOperatorInputError(
            f"Chromosome has {len(chromosome)} genes, template has {len(template)} tasks"
        )
    if rng is None:
        rng = random
    mutated = list(chromosome)
    index = rng.randrange(len(mutated))
    delta = rng.randint(-max_delta, max_delta)
    if mutated[index] + delta < 0:
        delta = abs(delta)
    mutated[index] += delta
    return _repaired(template, mutated, max_iterations)


def zero_chromosome(
    template: SolutionTemplate,
    max_iterations: Optional[int] = None,
) -> Chromosome:
    """All tasks requested at time zero, then repaired."""
    return _repaired(template, [0] * len(template), max_iterations)


def random_chromosome(
    template: SolutionTemplate,
    rng: Optional[random.Random] = None,
    max_iterations: Optional[int] = None,
) -> Chromosome:
    """Uniform start times in ``[0, horizon // 2]``, then repaired."""
    if rng is None:
        rng = random
    upper = template.horizon() // 2
    raw = [rng.randint(0, upper) for _ in range(len(template))]
    return _repaired(template, raw, max_iterations)
