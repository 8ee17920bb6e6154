"""Solution template for the Job Shop problem.

The template owns three things:

* the task catalog -- one immutable :class:`~jobshop_ga.models.Task` per
  operation, addressed by a dense integer id assigned in insertion order;
* the ordering index -- per-machine and per-job lists of task ids (never
  copies of the tasks);
* the current start times, one per task id.

A chromosome (vector of start times) is *loaded* into the template, repaired
in place by :meth:`SolutionTemplate.repair` and *extracted* back. Repair is
the only place where feasibility is established: after it, no two tasks on a
machine overlap and every job runs its operations in order.

The template is reused across evaluations and mutated in place, so it must
not be shared between concurrent evaluations. Use :meth:`clone` to give
each worker its own copy.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from jobshop_ga.errors import LengthMismatchError, RepairDivergenceError
from jobshop_ga.models import Chromosome, DataInstance, Step, Task

logger = logging.getLogger("jobshop_ga.template")

# Lower limit for the number of repair passes before giving up.
MIN_REPAIR_PASSES = 1000


class SolutionTemplate:
    """Mutable schedule built from an instance, see module docstring."""

    def __init__(self) -> None:
        self.tasks: list[Task] = []
        self.start_times: list[int] = []
        # machine id -> task ids; sorted by start time after load()/repair()
        self.machines: dict[int, list[int]] = {}
        # job id -> task ids in technological order, never re-sorted
        self.jobs: dict[int, list[int]] = {}
        self._horizon = 0
        self._machine_load: dict[int, int] = {}

    @classmethod
    def from_instance(cls, instance: DataInstance) -> "SolutionTemplate":
        """Build a template with one job per entry of ``instance.jobs``."""
        template = cls()
        for job_id, steps in enumerate(instance.jobs):
            template.add_job(job_id, steps)
        return template

    def __len__(self) -> int:
        return len(self.tasks)

    def add_job(self, job_id: int, steps: Iterable[Step]) -> None:
        """Register one job given as ordered ``(machine_id, duration)`` pairs.

        Raises:
            ValueError: If the job id was already added, or an id / duration
                is negative.
        """
        if job_id < 0:
            raise ValueError(f"Job id must be non-negative: {job_id}")
        if job_id in self.jobs:
            raise ValueError(f"Job {job_id} already added")
        steps = list(steps)
        for machine_id, duration in steps:
            if machine_id < 0:
                raise ValueError(f"Machine id must be non-negative: {machine_id}")
            if duration < 0:
                raise ValueError(f"Duration must be non-negative: {duration}")

        job_tasks: list[int] = []
        for sequence_number, (machine_id, duration) in enumerate(steps):
            task_id = len(self.tasks)
            self.tasks.append(
                Task(
                    job_id=job_id,
                    machine_id=machine_id,
                    sequence_number=sequence_number,
                    duration=duration,
                )
            )
            self.start_times.append(0)
            job_tasks.append(task_id)
            self.machines.setdefault(machine_id, []).append(task_id)
            self._machine_load[machine_id] = self._machine_load.get(machine_id, 0) + duration
            self._horizon += duration
        self.jobs[job_id] = job_tasks

    def clone(self) -> "SolutionTemplate":
        """Return an independent template sharing only the immutable tasks."""
        other = SolutionTemplate()
        other.tasks = list(self.tasks)
        other.start_times = list(self.start_times)
        other.machines = {m: list(ids) for m, ids in self.machines.items()}
        other.jobs = {j: list(ids) for j, ids in self.jobs.items()}
        other._horizon = self._horizon
        other._machine_load = dict(self._machine_load)
        return other

    # ------------------------------------------------------------------
    # chromosome interface
    # ------------------------------------------------------------------
    def load(self, chromosome: Sequence[int]) -> None:
        """Copy start times from ``chromosome`` and sort the machine groups.

        Raises:
            LengthMismatchError: If the chromosome length differs from the
                number of tasks.
        """
        if len(chromosome) != len(self.tasks):
            raise LengthMismatchError(
                f"Chromosome has {len(chromosome)} start times, "
                f"template has {len(self.tasks)} tasks"
            )
        self.start_times = [int(value) for value in chromosome]
        self._sort_machines()

    def extract(self) -> Chromosome:
        """Return the current start times in task id order."""
        return list(self.start_times)

    def _sort_machines(self) -> None:
        start = self.start_times
        # ties broken by task id
        for machine_tasks in self.machines.values():
            machine_tasks.sort(key=lambda task_id: (start[task_id], task_id))

    # ------------------------------------------------------------------
    # conflict resolution
    # ------------------------------------------------------------------
    def default_max_iterations(self) -> int:
        return max(MIN_REPAIR_PASSES, 10 * len(self.tasks))

    def _shift_conflicts(self, ordered: list[int]) -> int:
        """Resolve overlaps along one ordered group of task ids.

        For each adjacent pair whose left task ends after the right task
        starts, the right task and every task after it in ``ordered`` move
        forward by the overlap. Returns the number of shifts.
        """
        start = self.start_times
        tasks = self.tasks
        shifts = 0
        for i in range(len(ordered) - 1):
            left = ordered[i]
            diff = start[left] + tasks[left].duration - start[ordered[i + 1]]
            if diff > 0:
                shifts += 1
                for task_id in ordered[i + 1:]:
                    start[task_id] += diff
        return shifts

    def repair(self, max_iterations: Optional[int] = None) -> int:
        """Shift tasks forward until no job or machine conflicts remain.

        Each pass first enforces job order (a later operation of a job may not
        start before the previous one ends), then re-sorts every machine by
        start time and removes machine overlaps. Passes repeat until one of
        them performs no shift.

        Args:
            max_iterations: Maximum number of passes; defaults to
                :meth:`default_max_iterations`.

        Returns:
            Total number of shifts performed (0 if already feasible).

        Raises:
            RepairDivergenceError: If the cap is reached while conflicts
                remain.
        """
        if max_iterations is None:
            max_iterations = self.default_max_iterations()
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be positive: {max_iterations}")
        total_shifts = 0
        passes = 0
        while True:
            if passes >= max_iterations:
                raise RepairDivergenceError(passes)
            passes += 1
            pass_shifts = 0
            for job_tasks in self.jobs.values():
                pass_shifts += self._shift_conflicts(job_tasks)
            # job shifts may have reordered tasks sharing a machine
            self._sort_machines()
            for machine_tasks in self.machines.values():
                pass_shifts += self._shift_conflicts(machine_tasks)
            total_shifts += pass_shifts
            if pass_shifts == 0:
                break
        logger.debug("repair: %d passes, %d shifts", passes, total_shifts)
        return total_shifts

    # ------------------------------------------------------------------
    # bounds & fitness
    # ------------------------------------------------------------------
    def horizon(self) -> int:
        """Makespan if every task ran strictly one after another."""
        return self._horizon

    def absolute_lower_bound(self) -> int:
        """Largest total duration assigned to a single machine."""
        return max(self._machine_load.values(), default=0)

    def total_runtime(self) -> int:
        """Makespan of the current schedule.

        Machine groups must be sorted by start time (true after ``load`` and
        ``repair``).
        """
        result = 0
        for machine_tasks in self.machines.values():
            last = machine_tasks[-1]
            result = max(result, self.start_times[last] + self.tasks[last].duration)
        return result

    def fitness(self) -> float:
        """Position of the makespan between lower bound (1.0) and horizon (0.0).

        Only meaningful after :meth:`repair`.
        """
        runtime = self.total_runtime()
        lower = self.absolute_lower_bound()
        upper = self.horizon()
        if runtime < lower:
            return 1.0
        if runtime > upper:
            return 0.0
        if upper == lower:
            return 1.0
        return 1.0 - (runtime - lower) / (upper - lower)

    def evaluate(
        self,
        chromosome: Sequence[int],
        max_iterations: Optional[int] = None,
    ) -> tuple[Chromosome, float]:
        """Load, repair and score ``chromosome``.

        Returns:
            ``(repaired_chromosome, fitness)``.
        """
        self.load(chromosome)
        self.repair(max_iterations)
        return self.extract(), self.fitness()

    # ------------------------------------------------------------------
    # debug output
    # ------------------------------------------------------------------
    def describe(self) -> str:
        """Dump every task, then the machine and job groupings."""
        lines = []
        for task_id, task in enumerate(self.tasks):
            lines.append(
                f"{task_id}\t Job: {task.job_id}, Machine: {task.machine_id}, "
                f"Sequence: {task.sequence_number}, Length: {task.duration}, "
                f"Start time: {self.start_times[task_id]}"
            )
        for machine_id in sorted(self.machines):
            ids = " ".join(str(t) for t in self.machines[machine_id])
            lines.append(f"Machine: {machine_id}: {ids}")
        for job_id in sorted(self.jobs):
            ids = " ".join(str(t) for t in self.jobs[job_id])
            lines.append(f"Job: {job_id}: {ids}")
        return "\n".join(lines)

    def timeline(self) -> str:
        """Per-machine timeline ``(j<job>s<seq> <start>+<duration>)``."""
        lines = []
        for machine_id in sorted(self.machines):
            entries = []
            for task_id in self.machines[machine_id]:
                task = self.tasks[task_id]
                entries.append(
                    f"(j{task.job_id}s{task.sequence_number} "
                    f"{self.start_times[task_id]}+{task.duration})"
                )
            lines.append(f"Machine {machine_id}: " + " ".join(entries))
        lines.append("")
        lines.append(f"Total runtime: {self.total_runtime()}")
        return "\n".join(lines)
