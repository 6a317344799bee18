#!/usr/bin/env python3
"""
Tick-driven coroutine runner - demo driver

Runs a scenario on a CoroutineRunner advanced by a fixed-step tick loop,
either in simulated time (as fast as possible) or in real time.

Usage:
  python main.py [scenario] [options]

Scenarios:
  walk       - '@' walker following a path of nested move routines (default)
  countdown  - several delayed countdowns ticking side by side
  join       - supervisor joining separately scheduled workers via wait()

Options:
  --env-file PATH  Path to env defaults file (default: .env)
  --rate HZ        Ticks per second (default: 30)
  --duration S     Simulated run length in seconds (default: 20)
  --realtime / --no-realtime
                   Pace ticks against the wall clock
  --render / --no-render
                   Print the scenario's map after every tick
  --trace / --no-trace
                   Print the runner's event trace
  --stats / --no-stats
                   Print summary statistics

Env keys in .env:
  SCENARIO, TICK_RATE_HZ, MAX_CATCHUP_TICKS, DURATION_S, REALTIME, RENDER, TRACE, STATS
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import sys

from routine_sched.runner import CoroutineRunner
from tick_driver.clock import FixedStepLoop
from tick_driver.config import (
    LoopConfig,
    env_bool,
    env_float,
    loop_config_from_env,
    parse_env_file,
)
from tick_driver.scenarios import SCENARIOS, ScenarioRun

DEFAULT_ENV_FILE = ".env"


def _warn_env(msg: str) -> None:
    print(f"Warning: {msg}", file=sys.stderr)


def _defaults_from_env(env: dict[str, str]) -> dict[str, object]:
    scenario = env.get("SCENARIO", "walk")
    if scenario not in SCENARIOS:
        _warn_env(f"SCENARIO={scenario!r} is unknown. Using 'walk'.")
        scenario = "walk"

    return {
        "scenario": scenario,
        "duration": env_float(env, "DURATION_S", default=20.0, minimum=0.0, warn=_warn_env),
        "render": env_bool(env, "RENDER", default=False, warn=_warn_env),
        "stats": env_bool(env, "STATS", default=True, warn=_warn_env),
    }


def run_scenario(
    scenario_name: str,
    config: LoopConfig,
    duration_s: float = 20.0,
    render: bool = False,
) -> tuple[FixedStepLoop, ScenarioRun]:
    """Set up a scenario on a fresh runner and drive it."""
    if scenario_name not in SCENARIOS:
        print(f"Unknown scenario: {scenario_name}")
        print(f"Available: {', '.join(SCENARIOS.keys())}")
        sys.exit(1)

    runner = CoroutineRunner(trace=config.trace)
    loop = FixedStepLoop(runner, config)
    run = SCENARIOS[scenario_name](runner)

    def on_tick(_: CoroutineRunner) -> None:
        if render and run.render is not None:
            print(f"\n--- t={loop.stats.simulated_seconds:.2f}s ---")
            print(run.render())

    print(f"Running '{scenario_name}' scenario: {config.tick_rate_hz:g} Hz")
    print(f"Routines: {runner.count}")
    if config.realtime:
        loop.run_until_idle(on_tick=on_tick, timeout=duration_s)
    else:
        loop.run_for(duration_s, on_tick=on_tick)

    return loop, run


def main() -> None:
    argv = sys.argv[1:]

    # Parse env-file first so we can use it for argument defaults.
    env_parser = argparse.ArgumentParser(add_help=False)
    env_parser.add_argument("--env-file", default=DEFAULT_ENV_FILE)
    env_args, _ = env_parser.parse_known_args(argv)
    env = parse_env_file(env_args.env_file, warn=_warn_env)
    defaults = _defaults_from_env(env)
    config = loop_config_from_env(env, warn=_warn_env)

    parser = argparse.ArgumentParser(
        description="Tick-driven coroutine runner demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--env-file",
        default=env_args.env_file,
        help=f"Path to env defaults file (default: {DEFAULT_ENV_FILE})",
    )
    parser.add_argument(
        "scenario",
        nargs="?",
        default=defaults["scenario"],
        choices=list(SCENARIOS.keys()),
        help=f"Scenario to run (default: {defaults['scenario']})",
    )
    parser.add_argument(
        "--rate",
        type=float,
        default=config.tick_rate_hz,
        help=f"Ticks per second (default: {config.tick_rate_hz:g})",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=defaults["duration"],
        help=f"Run length in seconds (default: {defaults['duration']:g})",
    )
    parser.add_argument(
        "--realtime",
        action=argparse.BooleanOptionalAction,
        default=config.realtime,
        help=f"Pace ticks against the wall clock (default: {'on' if config.realtime else 'off'})",
    )
    parser.add_argument(
        "--render",
        action=argparse.BooleanOptionalAction,
        default=defaults["render"],
        help=f"Print the scenario map every tick (default: {'on' if defaults['render'] else 'off'})",
    )
    parser.add_argument(
        "--trace",
        action=argparse.BooleanOptionalAction,
        default=config.trace,
        help=f"Print the runner event trace (default: {'on' if config.trace else 'off'})",
    )
    parser.add_argument(
        "--stats",
        action=argparse.BooleanOptionalAction,
        default=defaults["stats"],
        help=f"Print summary statistics (default: {'on' if defaults['stats'] else 'off'})",
    )

    args = parser.parse_args(argv)

    try:
        config = replace(config, tick_rate_hz=args.rate, realtime=args.realtime, trace=args.trace)
    except ValueError as exc:
        parser.error(str(exc))

    loop, run = run_scenario(
        scenario_name=args.scenario,
        config=config,
        duration_s=args.duration,
        render=args.render,
    )

    if run.log:
        print("\n--- Scenario Log ---")
        for line in run.log:
            print(line)

    # Print trace if requested
    if args.trace:
        trace_log = loop.runner.trace_log
        print("\n--- Runner Trace ---")
        for line in trace_log[-200:]:
            print(line)
        if len(trace_log) > 200:
            print(f"... ({len(trace_log) - 200} more events)")

    if run.render is not None and not args.render:
        print("\n--- Final Map ---")
        print(run.render())

    # Print stats
    if args.stats:
        loop.stats.print_summary()


if __name__ == "__main__":
    main()
