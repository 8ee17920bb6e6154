"""Command line entry point: run the GA on one instance from a config file.

Usage::

    python -m jobshop_ga.main --config config.yaml

The config (YAML or JSON) holds the instance path (``instance``, plus
``instance_header: true`` for files with a JSPLIB header), seed, log level, GA
hyper-parameters (``ga`` section) and the output directory (``charts.dir``).
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import random
from dataclasses import fields
from datetime import datetime
from typing import Any, Dict, Optional

import yaml

from jobshop_ga.ga import GAParams, GAResult, run_genetic_algorithm
from jobshop_ga.parser import load_instance
from jobshop_ga.schedule import build_schedule
from jobshop_ga.template import SolutionTemplate
from jobshop_ga.visualization import next_unique_path, plot_fitness_progress, plot_gantt

logger = logging.getLogger("jobshop_ga.main")


def load_config(config_file: str) -> Dict[str, Any]:
    """Load configuration from a YAML or JSON file."""
    if not os.path.isfile(config_file):
        raise FileNotFoundError(f"Config file not found: {config_file}")
    with open(config_file, "r", encoding="utf-8") as f:
        text = f.read()
    if config_file.endswith((".yml", ".yaml")):
        cfg = yaml.safe_load(text) or {}
    else:
        cfg = json.loads(text)
    if not isinstance(cfg, dict):
        raise ValueError(f"Config root must be a mapping: {config_file}")
    return cfg


def params_from_config(cfg: Dict[str, Any]) -> GAParams:
    """Build :class:`GAParams` from the ``ga`` section, ignoring unknown keys."""
    ga_cfg = cfg.get("ga", {}) if isinstance(cfg.get("ga"), dict) else {}
    known = {f.name for f in fields(GAParams)}
    unknown = sorted(set(ga_cfg) - known)
    if unknown:
        logger.warning("Ignoring unknown ga config keys: %s", ", ".join(unknown))
    params = GAParams(**{k: v for k, v in ga_cfg.items() if k in known})
    params.validate()
    return params


def write_results_json(
    path: str,
    instance_path: str,
    template: SolutionTemplate,
    result: GAResult,
    params: GAParams,
    seed: Optional[int],
) -> str:
    best = result.best
    payload = {
        "instance": instance_path,
        "seed": seed,
        "timestamp": datetime.now().strftime("%Y%m%d_%H%M%S"),
        "params": {f.name: getattr(params, f.name) for f in fields(GAParams)},
        "tasks": len(template),
        "lower_bound": template.absolute_lower_bound(),
        "horizon": template.horizon(),
        "best": {
            "makespan": best.makespan,
            "fitness": best.fitness,
            "generation": best.generation,
            "chromosome": best.chromosome,
        },
        "fitness_history": result.fitness_history,
        "makespan_history": result.makespan_history,
        "evaluations": result.evaluations,
        "divergences": result.divergences,
        "elapsed_s": result.elapsed,
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    logger.info("Saved results JSON to %s", path)
    return path


def run(
    instance_path: str,
    params: GAParams,
    seed: Optional[int] = None,
    runs: int = 1,
    charts_dir: Optional[str] = "charts",
    header: bool = False,
) -> GAResult:
    """Run the GA ``runs`` times on one instance and keep the best result.

    When ``charts_dir`` is set, a results JSON, a Gantt chart of the best
    schedule and a progress plot are written there. ``header`` is passed to
    :func:`load_instance` for JSPLIB style files.
    """
    if runs < 1:
        raise ValueError(f"runs must be positive: {runs}")
    instance = load_instance(instance_path, header=header)
    template = SolutionTemplate.from_instance(instance)
    logger.info(
        "Instance: %s jobs=%d machines=%d ops=%d",
        instance_path,
        instance.jobs_number,
        instance.machines_number,
        len(template),
    )
    rng = random.Random(seed) if seed is not None else random.Random()

    best_result: Optional[GAResult] = None
    for r_idx in range(runs):
        result = run_genetic_algorithm(template, params, rng)
        logger.info(
            "Run %d/%d: makespan=%d fitness=%.4f",
            r_idx + 1,
            runs,
            result.best.makespan,
            result.best.fitness,
        )
        if best_result is None or result.best.fitness > best_result.best.fitness:
            best_result = result

    template.evaluate(best_result.best.chromosome, params.repair_max_iterations)
    logger.debug("Best schedule:\n%s", template.timeline())

    if charts_dir:
        os.makedirs(charts_dir, exist_ok=True)
        name = os.path.basename(instance_path)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        write_results_json(
            next_unique_path(os.path.join(charts_dir, f"ga_results_{name}_{stamp}.json")),
            instance_path,
            template,
            best_result,
            params,
            seed,
        )
        schedule = build_schedule(template)
        plot_gantt(
            schedule,
            save_path=next_unique_path(
                os.path.join(charts_dir, f"gantt_ga_c{schedule.cmax}_{name}_{stamp}.png")
            ),
            algo_name="ga",
        )
        plot_fitness_progress(
            best_result.makespan_history,
            save_path=next_unique_path(os.path.join(charts_dir, f"ga_progress_{name}_{stamp}.png")),
            ylabel="Best makespan",
        )
    return best_result


def main(argv: Optional[list[str]] = None) -> GAResult:
    parser = argparse.ArgumentParser(description="Job Shop genetic algorithm (config driven)")
    parser.add_argument(
        "--config",
        required=True,
        help="Path to a YAML/JSON config file",
    )
    args = parser.parse_args(argv)
    cfg = load_config(args.config)

    log_level = cfg.get("log_level", "INFO")
    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    instance_path = cfg.get("instance")
    if not instance_path:
        raise ValueError("Missing 'instance' key in config")
    charts_cfg = cfg.get("charts", {}) if isinstance(cfg.get("charts"), dict) else {}

    return run(
        instance_path=instance_path,
        params=params_from_config(cfg),
        seed=cfg.get("seed"),
        runs=int(cfg.get("runs", 1)),
        charts_dir=charts_cfg.get("dir", "charts"),
        header=bool(cfg.get("instance_header", False)),
    )


def cli() -> None:
    main()


if __name__ == "__main__":
    cli()
