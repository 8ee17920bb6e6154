"""Reader for plain-text Job Shop instances.

Format: one job per line, each line a whitespace separated sequence of
``machine_id duration`` integer pairs in job order. The line index (ignoring
blank and ``#`` comment lines) is the job id.

Files in the JSPLIB layout start with a ``<jobs> <machines>`` header line.
Pass ``header=True`` to read one; without it the first line is a job.
"""

from __future__ import annotations

import os

from jobshop_ga.models import DataInstance, Step


def _int_tokens(line: str, line_number: int) -> list[int]:
    try:
        return [int(token) for token in line.split()]
    except ValueError as e:
        raise ValueError(f"Line {line_number}: non-integer token in {line!r}") from e


def _read_header(row: list[int], line_number: int, body_rows: int) -> int:
    if len(row) != 2:
        raise ValueError(f"Line {line_number}: header must be '<jobs> <machines>', got {len(row)} tokens")
    jobs, machines = row
    if jobs != body_rows:
        raise ValueError(f"Line {line_number}: header declares {jobs} jobs, found {body_rows}")
    if machines < 0:
        raise ValueError(f"Line {line_number}: negative machine count {machines}")
    return machines


def parse_instance_text(text: str, header: bool = False) -> DataInstance:
    """Parse instance text into a :class:`DataInstance`.

    Args:
        text: Instance contents.
        header: Whether the first non-comment line is a ``<jobs> <machines>``
            header.

    Raises:
        ValueError: On empty input, odd token counts, non-integer tokens,
            negative machine ids / durations or a header that does not match
            the body.
    """
    rows: list[list[int]] = []
    line_numbers: list[int] = []
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        rows.append(_int_tokens(line, number))
        line_numbers.append(number)

    declared_machines = 0
    if header and rows:
        declared_machines = _read_header(rows[0], line_numbers[0], len(rows) - 1)
        rows = rows[1:]
        line_numbers = line_numbers[1:]

    if not rows:
        raise ValueError("Instance contains no jobs")

    jobs: list[list[Step]] = []
    for row, number in zip(rows, line_numbers):
        if len(row) % 2 != 0:
            raise ValueError(f"Line {number}: expected machine/duration pairs, got {len(row)} tokens")
        steps = list(zip(row[0::2], row[1::2]))
        for machine, duration in steps:
            if machine < 0:
                raise ValueError(f"Line {number}: negative machine id {machine}")
            if duration < 0:
                raise ValueError(f"Line {number}: negative duration {duration}")
        jobs.append(steps)

    used_machines = max((m for job in jobs for m, _ in job), default=-1) + 1
    machines_number = max(used_machines, declared_machines)
    return DataInstance(jobs=jobs, jobs_number=len(jobs), machines_number=machines_number)


def load_instance(file_path: str, header: bool = False) -> DataInstance:
    """Read and parse an instance file (see :func:`parse_instance_text`)."""
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Instance file not found: {file_path}")
    with open(file_path, "r", encoding="utf-8") as f:
        return parse_instance_text(f.read(), header=header)
