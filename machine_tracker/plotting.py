"""
Machine History Plot

Renders production count and cycle time of one machine against time.

Usage:
    python -m machine_tracker.plotting M001 --minutes 60 --out m001.png
"""

import argparse
import logging
from datetime import datetime
from typing import Any, Dict, List

import matplotlib
matplotlib.use("Agg")  # headless rendering
import matplotlib.pyplot as plt
import requests

logger = logging.getLogger("HistoryPlot")


def plot_history(samples: List[Dict[str, Any]], output_path: str, title: str = "") -> str:
    """
    Plot samples (MachineDto-shaped dicts, any order) to a PNG.

    Returns the output path.
    """
    ordered = sorted(samples, key=lambda s: _parse_time(s["timestamp"]))
    times = [_parse_time(s["timestamp"]) for s in ordered]
    counts = [s["production_count"] for s in ordered]
    cycle_times = [s["cycle_time_seconds"] for s in ordered]

    fig, (ax_count, ax_cycle) = plt.subplots(2, 1, figsize=(10, 6), sharex=True)

    ax_count.step(times, counts, where="post", color="tab:blue")
    ax_count.set_ylabel("Production count")
    ax_count.grid(True, alpha=0.3)

    ax_cycle.plot(times, cycle_times, marker="o", linestyle="-", color="tab:orange")
    ax_cycle.set_ylabel("Cycle time (s)")
    ax_cycle.set_xlabel("Time (UTC)")
    ax_cycle.grid(True, alpha=0.3)

    fig.suptitle(title or "Machine history")
    fig.autofmt_xdate()
    fig.savefig(output_path, dpi=100)
    plt.close(fig)
    return output_path


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    # FastAPI serializes UTC as ...Z or +00:00
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def fetch_history(api_url: str, machine_id: str, minutes: int) -> List[Dict[str, Any]]:
    response = requests.get(
        f"{api_url}/api/machines/{machine_id}/history",
        params={"minutes": minutes},
        timeout=5.0,
    )
    response.raise_for_status()
    return response.json()["samples"]


def main():
    parser = argparse.ArgumentParser(description="Plot CNC machine history")
    parser.add_argument("machine_id")
    parser.add_argument("--url", default="http://localhost:8000", help="Tracker API base URL")
    parser.add_argument("--minutes", type=int, default=60)
    parser.add_argument("--out", default=None, help="Output PNG path")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s | %(levelname)s | %(message)s')

    samples = fetch_history(args.url, args.machine_id, args.minutes)
    if not samples:
        logger.warning(f"No samples for {args.machine_id} in the last {args.minutes} min")
        return

    out = args.out or f"{args.machine_id}_history.png"
    plot_history(samples, out, title=f"{args.machine_id}: last {args.minutes} min")
    logger.info(f"Wrote {len(samples)} samples to {out}")


if __name__ == "__main__":
    main()
