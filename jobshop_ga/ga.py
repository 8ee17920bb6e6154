"""Generational genetic algorithm driving the solution template.

The loop keeps a population of :class:`~jobshop_ga.models.Specimen` objects.
Every generation:

* the ``elite_count`` fittest specimens survive, re-evaluated in the new
  generation;
* the remaining slots are filled with offspring of parents drawn from the
  fitter half of the population, each offspring mutated with probability
  ``mutation_rate``.

All fitness values are computed from chromosomes loaded into and repaired by
the template in the specimen's own generation.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Optional

from jobshop_ga.errors import RepairDivergenceError
from jobshop_ga.models import Chromosome, Specimen
from jobshop_ga.operators import (
    CROSSOVER_MODES,
    crossover,
    mutate,
    random_chromosome,
    zero_chromosome,
)
from jobshop_ga.template import SolutionTemplate

logger = logging.getLogger("jobshop_ga.ga")


@dataclass(slots=True)
class GAParams:
    """Bundle of GA hyper-parameters (all have usable defaults)."""

    population_size: int = 50
    generations: int = 100
    mutation_rate: float = 0.2
    crossover_mode: str = "one_point"
    elite_count: int = 2
    init_mode: str = "random"
    max_delta: int = 2
    repair_max_iterations: Optional[int] = None

    def validate(self) -> None:
        if self.population_size < 2:
            raise ValueError("population_size must be at least 2")
        if self.generations < 0:
            raise ValueError("generations must be non-negative")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError("mutation_rate must be within [0, 1]")
        if self.crossover_mode not in CROSSOVER_MODES:
            raise ValueError(f"Unknown crossover_mode: {self.crossover_mode}")
        if not 0 <= self.elite_count <= self.population_size:
            raise ValueError("elite_count must be within [0, population_size]")
        if self.init_mode not in ("random", "zero"):
            raise ValueError(f"Unknown init_mode: {self.init_mode}")
        if self.max_delta < 0:
            raise ValueError("max_delta must be non-negative")


@dataclass
class GAResult:
    """Outcome of :func:`run_genetic_algorithm`."""

    best: Specimen
    fitness_history: list[float] = field(default_factory=list)
    makespan_history: list[int] = field(default_factory=list)
    evaluations: int = 0
    divergences: int = 0
    elapsed: float = 0.0


@dataclass
class _Counters:
    evaluations: int = 0
    divergences: int = 0


def evaluate_specimen(
    template: SolutionTemplate,
    chromosome: Chromosome,
    generation: int,
    max_iterations: Optional[int] = None,
) -> Specimen:
    """Load, repair and score ``chromosome`` for the given generation."""
    repaired, fitness = template.evaluate(chromosome, max_iterations)
    return Specimen(
        chromosome=repaired,
        fitness=fitness,
        generation=generation,
        makespan=template.total_runtime(),
    )


def initial_population(
    template: SolutionTemplate,
    params: GAParams,
    rng: random.Random,
    counters: Optional[_Counters] = None,
) -> list[Specimen]:
    """Seed ``population_size`` repaired specimens for generation 0.

    In ``zero`` mode the first specimen starts everything at time zero and
    the others are mutations of it, so the population is not uniform.
    """
    if counters is None:
        counters = _Counters()
    limit = params.repair_max_iterations
    population: list[Specimen] = []
    base = zero_chromosome(template, limit) if params.init_mode == "zero" else None
    while len(population) < params.population_size:
        if params.init_mode == "zero":
            if population:
                seed = mutate(template, base, rng, params.max_delta, limit)
            else:
                seed = base
        else:
            seed = random_chromosome(template, rng, limit)
        population.append(evaluate_specimen(template, seed, 0, limit))
        counters.evaluations += 1
    return population


def _pick_parent(pool: list[Specimen], rng: random.Random) -> Specimen:
    return pool[rng.randrange(len(pool))]


def _breed(
    template: SolutionTemplate,
    parent_a: Specimen,
    parent_b: Specimen,
    params: GAParams,
    rng: random.Random,
) -> list[Chromosome]:
    limit = params.repair_max_iterations
    children = list(
        crossover(
            template,
            parent_a.chromosome,
            parent_b.chromosome,
            mode=params.crossover_mode,
            rng=rng,
            max_iterations=limit,
        )
    )
    for i, child in enumerate(children):
        if rng.random() < params.mutation_rate:
            children[i] = mutate(template, child, rng, params.max_delta, limit)
    return children


def next_generation(
    template: SolutionTemplate,
    population: list[Specimen],
    generation: int,
    params: GAParams,
    rng: random.Random,
    counters: Optional[_Counters] = None,
) -> list[Specimen]:
    """Produce the population of ``generation`` from the previous one."""
    if counters is None:
        counters = _Counters()
    limit = params.repair_max_iterations
    ranked = sorted(population, key=lambda s: s.fitness, reverse=True)
    new_population: list[Specimen] = []
    for elite in ranked[: params.elite_count]:
        new_population.append(evaluate_specimen(template, elite.chromosome, generation, limit))
        counters.evaluations += 1

    pool = ranked[: max(2, len(ranked) // 2)]
    while len(new_population) < params.population_size:
        parent_a = _pick_parent(pool, rng)
        parent_b = _pick_parent(pool, rng)
        try:
            if len(template) < 3:
                # too short for crossover, mutation only
                candidates = [mutate(template, parent_a.chromosome, rng, params.max_delta, limit)]
            else:
                candidates = _breed(template, parent_a, parent_b, params, rng)
        except RepairDivergenceError as e:
            counters.divergences += 1
            logger.warning("generation %d: offspring discarded, %s", generation, e)
            candidates = [parent_a.chromosome]
        for child in candidates:
            if len(new_population) >= params.population_size:
                break
            new_population.append(evaluate_specimen(template, child, generation, limit))
            counters.evaluations += 1
    return new_population


def run_genetic_algorithm(
    template: SolutionTemplate,
    params: Optional[GAParams] = None,
    rng: Optional[random.Random] = None,
    progress: Optional[list[float]] = None,
) -> GAResult:
    """Evolve a population for ``params.generations`` generations.

    Args:
        template: Solution template of the instance; mutated in place.
        params: GA hyper-parameters (defaults when None).
        rng: Random generator (fresh unseeded one when None).
        progress: Optional list mutated in-place with the best fitness of
            every generation (including generation 0).

    Returns:
        :class:`GAResult` with the best specimen found and per-generation
        histories of the best fitness and makespan.
    """
    if params is None:
        params = GAParams()
    params.validate()
    if rng is None:
        rng = random.Random()
    if len(template) == 0:
        raise ValueError("Template has no tasks")

    t0 = time.perf_counter()
    counters = _Counters()
    population = initial_population(template, params, rng, counters)
    best = max(population, key=lambda s: s.fitness)
    fitness_history = [best.fitness]
    makespan_history = [best.makespan]
    if progress is not None:
        progress.append(best.fitness)
    logger.info(
        "GA start: tasks=%d lower_bound=%d horizon=%d best_makespan=%d",
        len(template),
        template.absolute_lower_bound(),
        template.horizon(),
        best.makespan,
    )

    report_every = max(1, params.generations // 10)
    for generation in range(1, params.generations + 1):
        population = next_generation(template, population, generation, params, rng, counters)
        generation_best = max(population, key=lambda s: s.fitness)
        if generation_best.fitness > best.fitness:
            best = generation_best
        fitness_history.append(best.fitness)
        makespan_history.append(best.makespan)
        if progress is not None:
            progress.append(best.fitness)
        if generation % report_every == 0:
            logger.info(
                "Progress %d/%d: best fitness=%.4f makespan=%d",
                generation,
                params.generations,
                best.fitness,
                best.makespan,
            )

    elapsed = time.perf_counter() - t0
    logger.info(
        "GA done: best makespan=%d fitness=%.4f (generation %d) evals=%d in %.3fs",
        best.makespan,
        best.fitness,
        best.generation,
        counters.evaluations,
        elapsed,
    )
    return GAResult(
        best=best,
        fitness_history=fitness_history,
        makespan_history=makespan_history,
        evaluations=counters.evaluations,
        divergences=counters.divergences,
        elapsed=elapsed,
    )
