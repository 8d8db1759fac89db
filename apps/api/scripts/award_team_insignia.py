"""
Determine the winner of the one-time team insignia.

The insignia goes to the team whose current members have walked the most
kilometers in total (sum of walk completions). It is awarded once, at the
TEAM_INSIGNIA_CUTOVER date; this script only computes and prints the ranking.

Usage (inside api container):
  python scripts/award_team_insignia.py
  python scripts/award_team_insignia.py --top 10 --force
"""

from __future__ import annotations

import os
import sys
from datetime import date


# Ensure /app is on sys.path when run as a script inside the container.
_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)


def main() -> int:
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument("--top", type=int, default=5, help="number of teams to print")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Compute the ranking even before the cutover date.",
    )
    args = parser.parse_args()

    from core.config import settings
    from core.database import get_db_sync
    from services.team_matching import team_distance_leaderboard

    cutover = settings.TEAM_INSIGNIA_CUTOVER
    if date.today() < cutover and not args.force:
        print(f"ERROR: the team insignia is awarded on {cutover.isoformat()}; use --force to preview")
        return 2

    db = get_db_sync()
    try:
        board = team_distance_leaderboard(db)
    finally:
        db.close()

    if not board:
        print("No teams found.")
        return 1

    print(f"Team distance ranking (cutover {cutover.isoformat()}):")
    for rank, entry in enumerate(board[: args.top], start=1):
        name = entry.team_name or "(sin nombre)"
        print(f"{rank:>3}. {name:<40} {entry.total_distance_km:>10.1f} km  ({entry.member_count} miembros)")

    winner = board[0]
    ties = [e for e in board if e.total_distance_km == winner.total_distance_km]
    if len(ties) > 1:
        print(f"WARNING: {len(ties)} teams tied at {winner.total_distance_km:.1f} km; resolve manually.")
        return 1

    print(f"\nWinner: {winner.team_name or winner.team_id} ({winner.total_distance_km:.1f} km)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
