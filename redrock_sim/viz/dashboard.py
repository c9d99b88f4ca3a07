"""Real-time matplotlib dashboard for the settlement."""

from __future__ import annotations

import os

import matplotlib
matplotlib.use("TkAgg")  # Use interactive backend
import matplotlib.pyplot as plt
import numpy as np

from redrock_sim.core.config import DASHBOARD_UPDATE_INTERVAL


def rolling_mean(values: list[float], window: int = 7) -> np.ndarray:
    """Trailing mean; the first days average over what exists so far."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return arr
    sums = np.cumsum(arr)
    out = np.empty_like(arr)
    out[:window] = sums[:window] / np.arange(1, min(window, arr.size) + 1)
    if arr.size > window:
        out[window:] = (sums[window:] - sums[:-window]) / window
    return out


class Dashboard:
    """Real-time dashboard with 8 subplots updating during simulation."""

    def __init__(self) -> None:
        self._initialized = False
        self._fig = None
        self._axes = None
        self._update_counter = 0

    def initialize(self) -> None:
        """Set up the matplotlib figure and subplots."""
        plt.ion()
        self._fig, axes = plt.subplots(2, 4, figsize=(20, 9))
        self._fig.suptitle("Red Rock Territory", fontsize=14)
        self._axes = {
            "population": axes[0, 0],
            "temperature": axes[0, 1],
            "wellbeing": axes[0, 2],
            "supplies": axes[0, 3],
            "medical": axes[1, 0],
            "activities": axes[1, 1],
            "money": axes[1, 2],
            "weather_events": axes[1, 3],
        }
        for ax in axes.flat:
            ax.grid(True, alpha=0.3)

        plt.tight_layout()
        self._initialized = True
        plt.pause(0.01)

    def update(self, day: int, metrics: "MetricsCollector") -> None:  # noqa: F821
        """Update the dashboard with latest metrics."""
        self._update_counter += 1
        if self._update_counter % DASHBOARD_UPDATE_INTERVAL != 0:
            return

        if not self._initialized:
            self.initialize()

        snapshots = metrics.snapshots
        if not snapshots:
            return

        days = [s.day for s in snapshots]

        ax = self._axes["population"]
        ax.clear()
        ax.set_title("Population")
        ax.plot(days, [s.population for s in snapshots], "b-", linewidth=1.5)
        ax.grid(True, alpha=0.3)

        ax = self._axes["temperature"]
        ax.clear()
        ax.set_title("Temperature (C)")
        temps = [s.temperature for s in snapshots]
        ax.plot(days, temps, color="gray", linewidth=0.8, alpha=0.6)
        ax.plot(days, rolling_mean(temps), "r-", linewidth=1.5, label="7-day mean")
        ax.axhline(y=0, color="b", linestyle="--", alpha=0.4)
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        ax = self._axes["wellbeing"]
        ax.clear()
        ax.set_title("Health, Mood & Morale")
        ax.plot(days, [s.avg_health for s in snapshots], "b-", label="Health", linewidth=1.5)
        ax.plot(days, [s.avg_mood for s in snapshots], "m-", label="Mood", linewidth=1.5)
        ax.plot(days, [s.morale for s in snapshots], "orange", label="Morale", linewidth=1)
        ax.set_ylim(0, 100)
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        ax = self._axes["supplies"]
        ax.clear()
        ax.set_title("Supplies")
        ax.plot(days, [s.food for s in snapshots], "g-", label="Food", linewidth=1.5)
        ax.plot(days, [s.water for s in snapshots], "c-", label="Water", linewidth=1.5)
        ax.plot(days, [s.medicine for s in snapshots], "r-", label="Medicine", linewidth=1)
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        ax = self._axes["medical"]
        ax.clear()
        ax.set_title("Sick & Injured")
        ax.plot(days, [s.sick_count for s in snapshots], "r-", label="Sick", linewidth=1.5)
        ax.plot(days, [s.injured_count for s in snapshots], "k-", label="Injured", linewidth=1)
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        # Activity distribution (pie chart of latest day)
        ax = self._axes["activities"]
        ax.clear()
        ax.set_title("Activity Distribution")
        latest = snapshots[-1]
        if latest.activity_counts:
            sorted_acts = sorted(latest.activity_counts.items(), key=lambda x: -x[1])
            top = sorted_acts[:8]
            if len(sorted_acts) > 8:
                top.append(("other", sum(c for _, c in sorted_acts[8:])))
            ax.pie([c for _, c in top], labels=[a for a, _ in top], autopct="%1.0f%%", textprops={"fontsize": 7})

        ax = self._axes["money"]
        ax.clear()
        ax.set_title("Treasury")
        ax.plot(days, [s.money for s in snapshots], "y-", linewidth=1.5)
        ax.grid(True, alpha=0.3)

        ax = self._axes["weather_events"]
        ax.clear()
        ax.set_title("Extreme Weather & Outbreaks")
        ax.step(days, [s.active_weather_events for s in snapshots], "r-", where="post", label="Weather events")
        ax.step(days, [s.active_outbreaks for s in snapshots], "g-", where="post", label="Outbreaks")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        self._fig.suptitle(f"Red Rock Territory - Day {day}", fontsize=14)
        plt.tight_layout()
        plt.pause(0.01)

    def save(self, filepath: str) -> None:
        """Save the current dashboard as an image."""
        if self._fig:
            self._fig.savefig(filepath, dpi=150, bbox_inches="tight")

    def close(self) -> None:
        if self._fig:
            plt.close(self._fig)

    # ------------------------------------------------------------------
    # Post-hoc static plots
    # ------------------------------------------------------------------

    @staticmethod
    def comprehensive_report(metrics: "MetricsCollector", output_dir: str) -> None:  # noqa: F821
        """Generate all plots and save to output directory."""
        os.makedirs(output_dir, exist_ok=True)

        snapshots = metrics.snapshots
        if not snapshots:
            return

        days = [s.day for s in snapshots]

        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(days, [s.population for s in snapshots])
        ax.set_title("Population Over Time")
        ax.set_xlabel("Day")
        ax.set_ylabel("Settlers")
        ax.grid(True, alpha=0.3)
        fig.savefig(os.path.join(output_dir, "population.png"), dpi=150)
        plt.close(fig)

        fig, ax = plt.subplots(figsize=(10, 5))
        temps = [s.temperature for s in snapshots]
        ax.plot(days, temps, color="gray", alpha=0.5, label="Daily")
        ax.plot(days, rolling_mean(temps), "r-", label="7-day mean")
        ax.set_title("Temperature Over Time")
        ax.set_xlabel("Day")
        ax.set_ylabel("Temperature (C)")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)
        fig.savefig(os.path.join(output_dir, "temperature.png"), dpi=150)
        plt.close(fig)

        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(days, [s.avg_health for s in snapshots], label="Health")
        ax.plot(days, [s.avg_mood for s in snapshots], label="Mood")
        ax.plot(days, [s.morale for s in snapshots], label="Morale")
        ax.set_title("Wellbeing Over Time")
        ax.set_xlabel("Day")
        ax.set_ylim(0, 100)
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)
        fig.savefig(os.path.join(output_dir, "wellbeing.png"), dpi=150)
        plt.close(fig)

        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(days, [s.food for s in snapshots], label="Food")
        ax.plot(days, [s.water for s in snapshots], label="Water")
        ax.plot(days, [s.medicine for s in snapshots], label="Medicine")
        ax.set_title("Supplies Over Time")
        ax.set_xlabel("Day")
        ax.set_ylabel("Units")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)
        fig.savefig(os.path.join(output_dir, "supplies.png"), dpi=150)
        plt.close(fig)

        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(days, [s.sick_count for s in snapshots], "r-", label="Sick")
        ax.plot(days, [s.injured_count for s in snapshots], "k-", label="Injured")
        ax.step(days, [s.active_outbreaks for s in snapshots], "g-", where="post", label="Active outbreaks")
        ax.set_title("Medical Burden Over Time")
        ax.set_xlabel("Day")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)
        fig.savefig(os.path.join(output_dir, "medical.png"), dpi=150)
        plt.close(fig)

        print(f"Reports saved to {output_dir}/")
