#!/usr/bin/env python3

import argparse

from bayonet.core.events.event_manager import EventManager
from bayonet.game.encounters.encounter_loader import get_battle_data
from bayonet.game.managers.log_manager import LogLevel, LogManager
from bayonet.simulation import run_encounter, simulate


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate melee encounters")
    parser.add_argument("encounter", nargs="?", default="terrain",
                        help="Encounter key from the battle data (default: terrain)")
    parser.add_argument("--runs", "-n", type=int, default=200, help="Number of encounters to simulate")
    parser.add_argument("--seed", "-s", type=int, default=None, help="Seed for reproducible runs")
    parser.add_argument("--trace", action="store_true",
                        help="Play a single encounter and print its combat log")
    parser.add_argument("--save-log", action="store_true", help="With --trace, also write the log to logs/")
    parser.add_argument("--list", action="store_true", help="List the available encounters")
    return parser.parse_args()


def trace(encounter: str, seed, save_log: bool) -> None:
    event_manager = EventManager()
    log_manager = LogManager(event_manager, default_level=LogLevel.INFO)

    outcome = run_encounter(encounter, seed, event_manager=event_manager)
    event_manager.process_events()

    for line in log_manager.transcript():
        print(line)
    print(f"\nOutcome: {outcome.outcome} after {outcome.rounds} rounds, "
          f"{outcome.kills} kills, {outcome.player_health} health left")

    if save_log:
        path = log_manager.save_log_to_file()
        if path:
            print(f"Log written to {path}")


def main():
    args = parse_args()
    data = get_battle_data()

    if args.list:
        for key, config in data.encounters.items():
            print(f"{key:20} {config.context.value:8} {len(config.opponents)} opponents, "
                  f"{len(config.wave_events)} waves")
        return

    if args.encounter not in data.encounters:
        raise SystemExit(f"Unknown encounter '{args.encounter}'. Use --list to see encounters.")

    if args.trace:
        trace(args.encounter, args.seed, args.save_log)
        return

    summary = simulate(args.encounter, runs=args.runs, seed=args.seed)
    print(f"{summary.encounter_key}: {summary.runs} runs")
    for outcome, count in sorted(summary.outcome_counts.items()):
        print(f"  {outcome:11} {count:5}  ({summary.rate(outcome):.1%})")
    print(f"  mean rounds {summary.mean_rounds:.1f}, kills {summary.mean_kills:.2f}, "
          f"player health {summary.mean_player_health:.1f}, ally deaths {summary.mean_ally_deaths:.2f}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nSimulation interrupted by user")
