from jobshop_ga.models import Schedule, ScheduleOperationRow
from jobshop_ga.template import SolutionTemplate


def build_schedule(template: SolutionTemplate) -> Schedule:
    """Snapshot the template's current start times as a :class:`Schedule`.

    Rows follow task id order. ``cmax`` is the latest completion time over
    all rows, which equals ``template.total_runtime()`` once the template
    has been repaired.
    """
    operations: list[ScheduleOperationRow] = []
    for task_id, task in enumerate(template.tasks):
        start = template.start_times[task_id]
        operations.append(
            ScheduleOperationRow(
                start=start,
                end=start + task.duration,
                job=task.job_id,
                operation_index=task.sequence_number,
                machine=task.machine_id,
                processing_time=task.duration,
            )
        )
    cmax = max((row.end for row in operations), default=0)
    return Schedule(operations=operations, cmax=cmax)


def check_no_machine_overlap(schedule: Schedule) -> bool:
    """Ensure no two operations overlap on the same machine.

    Iterates operations grouped by machine, ordered by start, verifying
    that each starts no earlier than the previous one ended.

    Raises:
        AssertionError: On the first detected temporal overlap for a
        machine.
    """
    by_machine: dict[int, list[ScheduleOperationRow]] = {}
    for op in schedule.operations:
        by_machine.setdefault(op.machine, []).append(op)
    for machine_ops in by_machine.values():
        machine_ops.sort(key=lambda r: (r.start, r.end))
        prev_end = None
        for r in machine_ops:
            if prev_end is not None and r.start < prev_end:
                raise AssertionError(
                    "Overlap on machine " f"{r.machine} between end {prev_end} and start {r.start}"
                )
            prev_end = r.end
    return True


def check_job_precedence(schedule: Schedule) -> bool:
    """Ensure every operation starts after its job predecessor ended.

    Raises:
        AssertionError: On the first operation starting too early.
    """
    by_job: dict[int, list[ScheduleOperationRow]] = {}
    for op in schedule.operations:
        by_job.setdefault(op.job, []).append(op)
    for job_ops in by_job.values():
        job_ops.sort(key=lambda r: r.operation_index)
        for prev, r in zip(job_ops, job_ops[1:]):
            if r.start < prev.end:
                raise AssertionError(
                    f"Job {r.job} operation {r.operation_index} starts at {r.start} "
                    f"before operation {prev.operation_index} ends at {prev.end}"
                )
    return True


def is_feasible(schedule: Schedule) -> bool:
    """True when both machine and job constraints hold."""
    try:
        check_no_machine_overlap(schedule)
        check_job_precedence(schedule)
    except AssertionError:
        return False
    return True
