"""Monte Carlo analysis: run N settlements with different seeds, aggregate statistics."""

from __future__ import annotations

import csv
import os
import statistics
import time
from dataclasses import dataclass

import numpy as np


@dataclass
class RunResult:
    """Summary of a single simulation run."""
    seed: int
    final_population: int
    total_deaths: int
    survival_score: int
    outbreaks: int
    peak_active_outbreaks: int
    extreme_events: int
    final_morale: float
    final_avg_health: float
    final_food: int
    min_population: int
    first_death_day: int  # -1 when nobody died
    elapsed_seconds: float


def run_single(seed: int, days: int, population: int) -> RunResult:
    """Run one settlement and return its summary."""
    from redrock_sim.simulation.engine import SimulationEngine

    engine = SimulationEngine(seed=seed, population=population)
    engine.initialize()

    t0 = time.time()
    engine.step_days(days)
    elapsed = time.time() - t0

    snaps = engine.metrics.snapshots
    last = snaps[-1] if snaps else None

    first_death_day = -1
    for s in snaps:
        if s.deaths:
            first_death_day = s.day
            break

    return RunResult(
        seed=seed,
        final_population=engine.state.population.total,
        total_deaths=engine.medical.deaths,
        survival_score=engine.calculate_survival_score(),
        outbreaks=len(engine.medical.outbreaks),
        peak_active_outbreaks=engine.metrics.peak_outbreaks,
        extreme_events=engine.weather.extreme_event_count,
        final_morale=engine.state.morale.overall,
        final_avg_health=last.avg_health if last else 0.0,
        final_food=engine.state.resources.get("food"),
        min_population=min((s.population for s in snaps), default=population),
        first_death_day=first_death_day,
        elapsed_seconds=elapsed,
    )


def monte_carlo(
    n_runs: int = 20,
    days: int = 365,
    population: int = 8,
    output_dir: str = "results/monte_carlo",
) -> list[RunResult]:
    """Run N simulations with generated seeds and report aggregate stats."""

    os.makedirs(output_dir, exist_ok=True)
    results: list[RunResult] = []
    rng = np.random.default_rng(0)
    seeds = [int(s) for s in rng.integers(0, 100_000, size=n_runs)]

    print(f"=== Monte Carlo Simulation ===")
    print(f"Runs: {n_runs} | Days/run: {days} | Population: {population}")
    print(f"Seeds: {seeds[:5]}{'...' if n_runs > 5 else ''}")
    print()

    total_t0 = time.time()

    for i, seed in enumerate(seeds):
        t0 = time.time()
        result = run_single(seed, days, population)
        results.append(result)
        elapsed = time.time() - t0
        status = "SURVIVED" if result.final_population > 0 else "ABANDONED"
        print(
            f"  Run {i+1:>3}/{n_runs} | seed={seed:>5} | "
            f"pop {population}->{result.final_population:>3} | "
            f"deaths={result.total_deaths:>3} | "
            f"outbreaks={result.outbreaks:>2} | "
            f"score={result.survival_score:>3} | "
            f"{status} | {elapsed:.1f}s"
        )

    total_elapsed = time.time() - total_t0
    print(f"\nAll {n_runs} runs completed in {total_elapsed:.1f}s "
          f"({total_elapsed/max(1, n_runs):.1f}s avg)")

    # ── Aggregate Statistics ──────────────────────────────────────────
    print("\n" + "=" * 70)
    print("AGGREGATE RESULTS")
    print("=" * 70)

    def stat_line(label: str, values: list[float], fmt: str = ".1f") -> str:
        if not values:
            return f"  {label}: no data"
        avg = statistics.mean(values)
        med = statistics.median(values)
        std = statistics.stdev(values) if len(values) > 1 else 0
        return (f"  {label:<30s}  mean={avg:{fmt}}  median={med:{fmt}}  std={std:{fmt}}  "
                f"min={min(values):{fmt}}  max={max(values):{fmt}}")

    print("\nPOPULATION")
    print(stat_line("Final population", [r.final_population for r in results]))
    print(stat_line("Min population", [r.min_population for r in results]))
    print(stat_line("Total deaths", [r.total_deaths for r in results]))
    abandoned = sum(1 for r in results if r.final_population == 0)
    print(f"  Abandonment rate: {abandoned}/{n_runs} ({abandoned/max(1, n_runs)*100:.0f}%)")
    died = [r.first_death_day for r in results if r.first_death_day >= 0]
    if died:
        print(f"  First death: {len(died)}/{n_runs} runs (avg day {statistics.mean(died):.0f})")

    print("\nHEALTH")
    print(stat_line("Outbreaks", [r.outbreaks for r in results]))
    print(stat_line("Peak concurrent outbreaks", [r.peak_active_outbreaks for r in results]))
    print(stat_line("Final avg health", [r.final_avg_health for r in results]))

    print("\nWEATHER")
    print(stat_line("Extreme events", [r.extreme_events for r in results]))

    print("\nOUTCOME")
    print(stat_line("Final morale", [r.final_morale for r in results]))
    print(stat_line("Final food", [r.final_food for r in results]))
    print(stat_line("Survival score", [r.survival_score for r in results]))

    # ── Export CSV ────────────────────────────────────────────────────
    csv_path = os.path.join(output_dir, "monte_carlo_results.csv")
    with open(csv_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([
            "seed", "final_pop", "min_pop", "deaths", "score", "outbreaks",
            "peak_outbreaks", "extreme_events", "morale", "health", "food",
            "first_death_day", "elapsed_s",
        ])
        for r in results:
            writer.writerow([
                r.seed, r.final_population, r.min_population, r.total_deaths,
                r.survival_score, r.outbreaks, r.peak_active_outbreaks,
                r.extreme_events, f"{r.final_morale:.1f}",
                f"{r.final_avg_health:.1f}", r.final_food,
                r.first_death_day, f"{r.elapsed_seconds:.1f}",
            ])
    print(f"\nResults exported to {csv_path}")

    return results


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Monte Carlo Red Rock Territory simulation")
    parser.add_argument("--runs", type=int, default=20, help="Number of runs")
    parser.add_argument("--days", type=int, default=365, help="Days per run")
    parser.add_argument("--population", type=int, default=8, help="Founding population")
    parser.add_argument("--output-dir", type=str, default="results/monte_carlo")
    args = parser.parse_args()

    monte_carlo(
        n_runs=args.runs,
        days=args.days,
        population=args.population,
        output_dir=args.output_dir,
    )
