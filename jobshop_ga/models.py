"""Core data structures for Job Shop instances and GA specimens.

This module defines:
    Step         -- alias describing one operation of a job (machine, duration).
    Chromosome   -- alias for a vector of start times aligned with task ids.
    Task         -- immutable per-operation facts held by the template.
    DataInstance -- immutable container with all jobs for one instance.
    Specimen     -- chromosome with its fitness and generation.
"""

from dataclasses import dataclass

Step = tuple[int, int]  # (machine, duration)
Chromosome = list[int]  # start time per task index


@dataclass(frozen=True)
class Task:
    """Immutable description of a single operation.

    The start time is not stored here; the solution template keeps start
    times in a separate list indexed by task id.

    Attributes:
        job_id: Job the operation belongs to.
        machine_id: Machine the operation must run on.
        sequence_number: 0-based position of the operation inside its job.
        duration: Processing time (non-negative).
    """

    job_id: int
    machine_id: int
    sequence_number: int
    duration: int


@dataclass(frozen=True)
class DataInstance:
    """Parsed Job Shop instance.

    Attributes:
        jobs: Nested list: jobs[j][k] -> (machine, duration).
        jobs_number: Number of jobs (J).
        machines_number: Number of distinct machine ids (max id + 1).
    """

    jobs: list[list[Step]]
    jobs_number: int
    machines_number: int

    @property
    def operations_number(self) -> int:
        return sum(len(job) for job in self.jobs)


@dataclass
class Specimen:
    """Member of the GA population.

    ``fitness`` and ``makespan`` are only meaningful for the generation in
    which the chromosome was loaded and repaired.
    """

    chromosome: Chromosome
    fitness: float
    generation: int
    makespan: int = 0


@dataclass(frozen=True)
class ScheduleOperationRow:
    """Single scheduled operation with timing and identification data.

    Fields:
        start: Start time of the operation.
        end: Completion time (start + processing_time).
        job: Job identifier.
        operation_index: Index of the operation inside its job (0-based).
        machine: Machine on which the operation is processed.
        processing_time: Duration of the operation.
    """
    start: int
    end: int
    job: int
    operation_index: int
    machine: int
    processing_time: int


@dataclass(frozen=True)
class Schedule:
    """Full schedule plus objective value (cmax).

    Fields:
        operations: Flat list of all scheduled operations in task order.
        cmax: Makespan (maximum completion time across all operations).
    """
    operations: list[ScheduleOperationRow]
    cmax: int
