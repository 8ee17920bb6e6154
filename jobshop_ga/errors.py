"""Exception types raised by the solution template and genetic operators."""


class JobShopError(Exception):
    """Base class for all errors raised by ``jobshop_ga``."""


class LengthMismatchError(JobShopError, ValueError):
    """Chromosome length differs from the number of tasks in the template."""


class MalformedOperatorInputError(JobShopError, ValueError):
    """Crossover / mutation received too short or mismatched chromosomes."""


class RepairDivergenceError(JobShopError, RuntimeError):
    """Conflict resolution did not reach a fixed point within its cap.

    Attributes:
        iterations: Number of full job + machine passes performed before
            giving up.
    """

    def __init__(self, iterations: int):
        super().__init__(
            f"Conflict resolution did not converge after {iterations} passes"
        )
        self.iterations = iterations
