import random
from pathlib import Path

import pytest
from helpers import independent_template, two_by_two_template

from jobshop_ga.errors import LengthMismatchError, RepairDivergenceError
from jobshop_ga.parser import load_instance
from jobshop_ga.schedule import build_schedule, check_job_precedence, check_no_machine_overlap
from jobshop_ga.template import SolutionTemplate

FT06 = Path(__file__).parent / "fixtures" / "ft06.txt"


def load_template_ft06() -> SolutionTemplate:
    return SolutionTemplate.from_instance(load_instance(str(FT06), header=True))


def test_catalog_and_index_built_from_jobs():
    template = two_by_two_template()
    assert len(template) == 4
    assert template.jobs == {0: [0, 1], 1: [2, 3]}
    assert template.machines == {0: [0, 3], 1: [1, 2]}
    task = template.tasks[3]
    assert (task.job_id, task.machine_id, task.sequence_number, task.duration) == (1, 0, 1, 1)
    # every task in exactly one job group and one machine group
    assert sorted(t for ids in template.jobs.values() for t in ids) == [0, 1, 2, 3]
    assert sorted(t for ids in template.machines.values() for t in ids) == [0, 1, 2, 3]


def test_bounds_of_two_by_two_instance():
    template = two_by_two_template()
    assert template.absolute_lower_bound() == 6
    assert template.horizon() == 10


def test_bounds_follow_added_jobs():
    template = SolutionTemplate()
    assert template.horizon() == 0
    assert template.absolute_lower_bound() == 0
    template.add_job(0, [(0, 3), (1, 2)])
    assert template.horizon() == 5
    assert template.absolute_lower_bound() == 3
    template.add_job(1, [(1, 4), (0, 1)])
    assert template.horizon() == 10
    assert template.absolute_lower_bound() == 6


def test_add_job_rejects_duplicates_and_negative_values():
    template = two_by_two_template()
    with pytest.raises(ValueError):
        template.add_job(0, [(0, 1)])
    with pytest.raises(ValueError):
        template.add_job(2, [(0, -1)])
    with pytest.raises(ValueError):
        template.add_job(3, [(-1, 1)])


def test_load_length_mismatch():
    template = two_by_two_template()
    with pytest.raises(LengthMismatchError):
        template.load([0, 0, 0])
    with pytest.raises(ValueError):
        template.load([0, 0, 0, 0, 0])


def test_load_sorts_machines_but_not_jobs():
    template = two_by_two_template()
    template.load([5, 0, 0, 0])
    assert template.jobs[0] == [0, 1]
    assert template.machines[0] == [3, 0]
    assert template.extract() == [5, 0, 0, 0]


def test_extract_returns_copy():
    template = two_by_two_template()
    template.load([1, 2, 3, 4])
    out = template.extract()
    out[0] = 99
    assert template.extract() == [1, 2, 3, 4]


def test_repair_from_zero_reaches_lower_bound():
    template = two_by_two_template()
    template.load([0, 0, 0, 0])
    shifts = template.repair()
    assert shifts == 3
    assert template.extract() == [0, 4, 0, 4]
    assert template.total_runtime() == 6
    assert template.fitness() == 1.0


def test_repair_at_lower_bound_is_noop():
    template = two_by_two_template()
    template.load([0, 4, 0, 4])
    assert template.repair() == 0
    assert template.extract() == [0, 4, 0, 4]


def test_repair_is_idempotent():
    template = load_template_ft06()
    rng = random.Random(7)
    for _ in range(20):
        template.load([rng.randint(0, 50) for _ in range(len(template))])
        template.repair()
        repaired = template.extract()
        assert template.repair() == 0
        assert template.extract() == repaired


def test_repaired_schedules_are_feasible_and_bounded():
    template = load_template_ft06()
    assert template.horizon() == 197
    assert template.absolute_lower_bound() == 43
    rng = random.Random(11)
    for _ in range(30):
        template.load([rng.randint(0, template.horizon() // 2) for _ in range(len(template))])
        template.repair()
        schedule = build_schedule(template)
        assert check_no_machine_overlap(schedule)
        assert check_job_precedence(schedule)
        assert schedule.cmax == template.total_runtime()
        assert template.absolute_lower_bound() <= template.total_runtime()
        assert 0.0 <= template.fitness() <= 1.0


def test_repair_only_moves_forward():
    template = load_template_ft06()
    rng = random.Random(3)
    raw = [rng.randint(0, 30) for _ in range(len(template))]
    template.load(raw)
    template.repair()
    assert all(after >= before for before, after in zip(raw, template.extract()))


def test_repair_leaves_machines_time_sorted():
    template = load_template_ft06()
    template.load([0] * len(template))
    template.repair()
    for ids in template.machines.values():
        starts = [template.start_times[t] for t in ids]
        assert starts == sorted(starts)


def test_repair_iteration_cap_raises():
    template = two_by_two_template()
    template.load([0, 0, 0, 0])
    with pytest.raises(RepairDivergenceError) as exc_info:
        template.repair(max_iterations=1)
    assert exc_info.value.iterations == 1


def test_repair_within_cap_succeeds():
    template = two_by_two_template()
    template.load([0, 0, 0, 0])
    template.repair(max_iterations=2)
    assert template.extract() == [0, 4, 0, 4]


@pytest.mark.parametrize(
    "chromosome, runtime, fitness",
    [
        ([0, 4, 0, 4], 6, 1.0),
        ([0, 6, 0, 4], 8, 0.5),
        ([0, 3, 5, 9], 10, 0.0),
        ([0, 3, 10, 20], 21, 0.0),
    ],
)
def test_fitness_normalization(chromosome, runtime, fitness):
    template = two_by_two_template()
    template.load(chromosome)
    assert template.repair() == 0
    assert template.total_runtime() == runtime
    assert template.fitness() == pytest.approx(fitness)


def test_fitness_non_increasing_in_runtime():
    template = two_by_two_template()
    values = []
    for delay in range(0, 8):
        template.load([0, 4 + delay, 0, 4])
        template.repair()
        values.append((template.total_runtime(), template.fitness()))
    values.sort()
    fitnesses = [f for _, f in values]
    assert fitnesses == sorted(fitnesses, reverse=True)


def test_repaired_runtime_can_exceed_horizon():
    # repair only shifts forward, so late seeds keep their idle prefix
    template = two_by_two_template()
    template.load([5, 5, 5, 5])
    assert template.repair() > 0
    assert template.extract() == [5, 9, 5, 9]
    assert template.total_runtime() == 11 > template.horizon()
    assert template.fitness() == 0.0
    assert template.repair() == 0


def test_fitness_when_horizon_equals_lower_bound():
    template = SolutionTemplate()
    template.add_job(0, [(0, 2)])
    template.add_job(1, [(0, 3)])
    assert template.horizon() == template.absolute_lower_bound() == 5
    template.load([0, 0])
    template.repair()
    assert template.total_runtime() == 5
    assert template.fitness() == 1.0


def test_empty_template():
    template = SolutionTemplate()
    template.load([])
    assert template.repair() == 0
    assert template.total_runtime() == 0
    assert template.fitness() == 1.0


def test_evaluate_returns_repaired_and_fitness():
    template = two_by_two_template()
    repaired, fitness = template.evaluate([0, 0, 0, 0])
    assert repaired == [0, 4, 0, 4]
    assert fitness == 1.0


def test_clone_is_independent():
    template = two_by_two_template()
    template.load([0, 4, 0, 4])
    other = template.clone()
    other.load([5, 0, 0, 0])
    other.repair()
    assert template.extract() == [0, 4, 0, 4]
    assert template.machines[0] == [0, 3]
    assert other.horizon() == template.horizon()


def test_independent_tasks_never_shift():
    template = independent_template(5)
    template.load([4, 3, 2, 1, 0])
    assert template.repair() == 0


def test_describe_and_timeline():
    template = two_by_two_template()
    template.evaluate([0, 0, 0, 0])
    dump = template.describe()
    assert "0\t Job: 0, Machine: 0, Sequence: 0, Length: 3, Start time: 0" in dump
    assert "Job: 1: 2 3" in dump
    assert "Machine: 1: 2 1" in dump
    timeline = template.timeline()
    assert "Machine 0: (j0s0 0+3) (j1s1 4+1)" in timeline
    assert timeline.endswith("Total runtime: 6")
