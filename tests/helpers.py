"""Small instances and a scripted RNG shared by the test modules."""

from __future__ import annotations

from jobshop_ga.models import DataInstance
from jobshop_ga.template import SolutionTemplate


def two_by_two_instance() -> DataInstance:
    """2 jobs x 2 machines: lower bound 6, horizon 10."""
    jobs = [
        [(0, 3), (1, 2)],
        [(1, 4), (0, 1)],
    ]
    return DataInstance(jobs=jobs, jobs_number=2, machines_number=2)


def two_by_two_template() -> SolutionTemplate:
    return SolutionTemplate.from_instance(two_by_two_instance())


def independent_template(n: int) -> SolutionTemplate:
    """``n`` single-operation jobs on distinct machines: nothing ever conflicts."""
    template = SolutionTemplate()
    for job_id in range(n):
        template.add_job(job_id, [(job_id, 1)])
    return template


class ScriptedRng:
    """Stand-in for random.Random returning queued values."""

    def __init__(self, *values: int):
        self.values = list(values)

    def _next(self) -> int:
        return self.values.pop(0)

    def randint(self, a: int, b: int) -> int:
        value = self._next()
        assert a <= value <= b, f"{value} outside [{a}, {b}]"
        return value

    def randrange(self, n: int) -> int:
        value = self._next()
        assert 0 <= value < n
        return value
