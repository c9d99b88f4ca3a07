"""Entry point for the Red Rock Territory settlement simulation."""

from __future__ import annotations

import argparse
import os
import time


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Red Rock Territory Settlement Simulation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--days", type=int, default=365, help="Number of days to simulate")
    parser.add_argument("--population", type=int, default=8, help="Founding population size")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument("--speed", type=int, default=0, help="Milliseconds between days (0 = as fast as possible)")
    parser.add_argument("--verbosity", type=int, default=0, choices=[0, 1, 2, 3], help="Log verbosity level")
    parser.add_argument("--output-dir", type=str, default="results", help="Output directory for results")
    parser.add_argument("--no-dashboard", action="store_true", help="Disable real-time dashboard")
    parser.add_argument("--log-file", type=str, default=None, help="Path to log file")
    parser.add_argument("--data-dir", type=str, default=None, help="Directory holding names/backgrounds/events/locations JSON")

    args = parser.parse_args()

    # Import here to allow --help without loading everything
    from redrock_sim.simulation.engine import SimulationEngine
    from redrock_sim.viz.logger import SimLogger

    print(f"=== Red Rock Territory ===")
    print(f"Population: {args.population} | Days: {args.days} | Seed: {args.seed}")
    print(f"Output: {args.output_dir}")
    print()

    logger = SimLogger(
        verbosity=args.verbosity,
        log_file=args.log_file or os.path.join(args.output_dir, "simulation.log"),
        stdout=(args.verbosity > 0),
    )
    engine = SimulationEngine(
        seed=args.seed, population=args.population, data_dir=args.data_dir, logger=logger,
    )

    print("Founding the settlement...")
    t0 = time.time()
    engine.initialize()
    state = engine.state
    print(f"Initialization complete in {time.time() - t0:.2f}s")
    print(f"  Settlers: {state.population.total}")
    print(f"  Buildings: {', '.join(b.name for b in state.infrastructure.buildings)}")
    print(f"  Data tables from disk: {sorted(k for k, v in engine.provider.loaded_from_disk.items() if v) or 'none'}")
    print()

    # Set up dashboard
    dashboard = None
    if not args.no_dashboard:
        try:
            from redrock_sim.viz.dashboard import Dashboard
            dashboard = Dashboard()
            dashboard.initialize()
            print("Real-time dashboard enabled")
        except Exception as e:
            print(f"Dashboard unavailable ({e}), continuing without visualization")
            dashboard = None

    target_step = args.days

    def on_step(eng: SimulationEngine) -> None:
        if dashboard:
            dashboard.update(eng.state.day, eng.metrics)
        if eng.current_step >= target_step:
            eng.stop()

    engine.set_step_callback(on_step)

    print(f"Running simulation for {args.days} days...")
    t0 = time.time()
    try:
        if args.speed > 0:
            engine.set_simulation_speed(args.speed)
            engine.start()
        else:
            engine.step_days(args.days)
    except KeyboardInterrupt:
        print("\nSimulation interrupted by user")

    elapsed = time.time() - t0
    days_run = engine.current_step
    print(f"\nSimulation complete: {days_run} days in {elapsed:.2f}s ({days_run / max(0.01, elapsed):.0f} days/sec)")

    # Export results
    os.makedirs(args.output_dir, exist_ok=True)

    csv_path = os.path.join(args.output_dir, "metrics.csv")
    engine.metrics.export_csv(csv_path)
    print(f"Metrics exported to {csv_path}")

    chronicle_path = os.path.join(args.output_dir, "chronicle.json")
    engine.export_chronicle_json(chronicle_path)
    print(f"Chronicle exported to {chronicle_path}")

    try:
        from redrock_sim.viz.dashboard import Dashboard as DashClass
        DashClass.comprehensive_report(engine.metrics, args.output_dir)
    except Exception as e:
        print(f"Could not generate plots: {e}")

    print()
    print(engine.metrics.summary_report())
    print()
    print(engine.final_report())

    if dashboard:
        dashboard.save(os.path.join(args.output_dir, "dashboard_final.png"))
        dashboard.close()

    engine.logger.export_json(os.path.join(args.output_dir, "events.json"))
    engine.logger.close()

    print(f"\nAll results saved to {args.output_dir}/")


if __name__ == "__main__":
    main()
