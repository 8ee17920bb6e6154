"""Genetic algorithm for the Job Shop Scheduling Problem.

Exports the solution template, genetic operators, GA driver and parsing
utilities.
"""

from jobshop_ga.errors import (  # noqa: F401
    JobShopError,
    LengthMismatchError,
    MalformedOperatorInputError,
    RepairDivergenceError,
)
from jobshop_ga.ga import GAParams, GAResult, run_genetic_algorithm  # noqa: F401
from jobshop_ga.models import DataInstance, Specimen, Task  # noqa: F401
from jobshop_ga.operators import crossover, mutate, random_chromosome  # noqa: F401
from jobshop_ga.parser import load_instance, parse_instance_text  # noqa: F401
from jobshop_ga.template import SolutionTemplate  # noqa: F401

__all__ = [
    "DataInstance",
    "GAParams",
    "GAResult",
    "JobShopError",
    "LengthMismatchError",
    "MalformedOperatorInputError",
    "RepairDivergenceError",
    "SolutionTemplate",
    "Specimen",
    "Task",
    "crossover",
    "load_instance",
    "mutate",
    "parse_instance_text",
    "random_chromosome",
    "run_genetic_algorithm",
]
