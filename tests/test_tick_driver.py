from __future__ import annotations

import contextlib
import io
import os
import tempfile
import unittest

from main import _defaults_from_env, run_scenario
from routine_sched.runner import CoroutineRunner
from tick_driver.clock import FixedStepLoop
from tick_driver.config import (
    LoopConfig,
    env_bool,
    env_float,
    load_loop_config,
    loop_config_from_env,
    parse_env_file,
)
from tick_driver.scenarios import SCENARIOS, Walker


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.current = start

    def now(self) -> float:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.current += seconds


def forever():
    while True:
        yield


def steps(count: int):
    for _ in range(count):
        yield


class LoopConfigTests(unittest.TestCase):
    def _write_env(self, text: str) -> str:
        with tempfile.NamedTemporaryFile("w", suffix=".env", delete=False) as f:
            f.write(text)
        self.addCleanup(os.unlink, f.name)
        return f.name

    def test_config_loading(self) -> None:
        path = self._write_env(
            "# loop settings\n"
            "export TICK_RATE_HZ=60\n"
            "MAX_CATCHUP_TICKS='7'\n"
            "TRACE=yes\n"
            "REALTIME=off\n"
        )

        config = load_loop_config(path)
        self.assertEqual(config.tick_rate_hz, 60.0)
        self.assertEqual(config.max_catchup_ticks, 7)
        self.assertTrue(config.trace)
        self.assertFalse(config.realtime)
        self.assertAlmostEqual(config.step, 1.0 / 60.0)

    def test_invalid_values_fall_back_to_defaults(self) -> None:
        path = self._write_env("TICK_RATE_HZ=fast\nMAX_CATCHUP_TICKS=0\nTRACE=maybe\n")

        config = load_loop_config(path)
        self.assertEqual(config, LoopConfig())

    def test_malformed_lines_and_values_are_reported_to_warn(self) -> None:
        path = self._write_env("not a setting\n=orphan\nTICK_RATE_HZ=fast\nTRACE=1\n")
        warnings: list[str] = []

        env = parse_env_file(path, warn=warnings.append)
        self.assertEqual(env, {"TICK_RATE_HZ": "fast", "TRACE": "1"})
        self.assertEqual(len(warnings), 2)
        self.assertIn("line 1", warnings[0])
        self.assertIn("empty key", warnings[1])

        config = loop_config_from_env(env, warn=warnings.append)
        self.assertEqual(config, LoopConfig(trace=True))
        self.assertEqual(len(warnings), 3)
        self.assertIn("TICK_RATE_HZ", warnings[2])

    def test_env_helpers_without_warn_stay_silent(self) -> None:
        env = {"DURATION_S": "-1", "RENDER": "sometimes"}

        self.assertEqual(env_float(env, "DURATION_S", default=5.0, minimum=0.0), 5.0)
        self.assertFalse(env_bool(env, "RENDER", default=False))
        self.assertTrue(env_bool(env, "MISSING", default=True))

    def test_cli_defaults_share_env_parsing(self) -> None:
        path = self._write_env("SCENARIO=join\nDURATION_S=3.5\nRENDER=yes\nSTATS=no\n")

        defaults = _defaults_from_env(parse_env_file(path))
        self.assertEqual(
            defaults,
            {"scenario": "join", "duration": 3.5, "render": True, "stats": False},
        )

    def test_missing_env_file_uses_defaults(self) -> None:
        self.assertEqual(load_loop_config("/nonexistent/.env"), LoopConfig())

    def test_direct_construction_validates(self) -> None:
        with self.assertRaises(ValueError):
            LoopConfig(tick_rate_hz=0)
        with self.assertRaises(ValueError):
            LoopConfig(max_catchup_ticks=0)


class FixedStepLoopTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.runner = CoroutineRunner()
        self.config = LoopConfig(tick_rate_hz=2.0, max_catchup_ticks=2)
        self.loop = FixedStepLoop(self.runner, self.config, now_provider=self.clock.now)

    def test_pump_advances_whole_steps_and_caps_catchup(self) -> None:
        self.runner.schedule(forever())

        self.assertEqual(self.loop.pump(), 0)

        self.clock.current = 1.25
        self.assertEqual(self.loop.pump(), 2)
        self.assertEqual(self.loop.accumulator, 0.25)

        self.clock.current = 3.0
        self.assertEqual(self.loop.pump(), 2)
        self.assertEqual(self.loop.accumulator, 0.0)
        self.assertEqual(self.loop.stats.dropped_seconds, 1.0)

        self.clock.current = 3.25
        self.assertEqual(self.loop.pump(), 0)
        self.assertEqual(self.runner.tick, 4)

    def test_run_for_stops_when_runner_is_empty(self) -> None:
        self.runner.schedule(steps(2))

        ticks = self.loop.run_for(10.0)
        self.assertEqual(ticks, 3)
        self.assertEqual(self.runner.count, 0)
        self.assertEqual(self.loop.stats.ticks, 3)
        self.assertEqual(self.loop.stats.completions, 1)

    def test_run_for_calls_tick_callback(self) -> None:
        self.runner.schedule(forever())
        seen: list[int] = []

        self.loop.run_for(2.0, on_tick=lambda runner: seen.append(runner.tick))
        self.assertEqual(seen, [1, 2, 3, 4])
        self.assertEqual(self.loop.stats.simulated_seconds, 2.0)
        self.assertEqual(self.loop.stats.peak_slots, 1)

    def test_run_until_idle_paces_against_clock(self) -> None:
        self.runner.schedule(steps(2))

        self.loop.run_until_idle(sleep=self.clock.sleep)
        self.assertEqual(self.runner.count, 0)
        self.assertEqual(self.clock.current, 1.5)

    def test_run_until_idle_honors_timeout(self) -> None:
        self.runner.schedule(forever())

        self.loop.run_until_idle(sleep=self.clock.sleep, timeout=2.0)
        self.assertEqual(self.runner.count, 1)
        self.assertEqual(self.clock.current, 2.0)


class ScenarioTests(unittest.TestCase):
    def test_walker_reaches_end_of_path(self) -> None:
        runner = CoroutineRunner()
        walker = Walker()
        runner.schedule(walker.movement())

        FixedStepLoop(runner, LoopConfig(tick_rate_hz=30.0)).run_for(20.0)

        self.assertEqual((walker.x, walker.y), (10, 10))
        self.assertEqual(runner.count, 0)
        self.assertEqual(walker.render().splitlines()[10][10], "@")

    def test_join_scenario_waits_for_all_workers(self) -> None:
        runner = CoroutineRunner()
        run = SCENARIOS["join"](runner)

        FixedStepLoop(runner).run_for(10.0)

        self.assertFalse(run.is_running)
        self.assertEqual(run.log[0], "supervisor: starting workers")
        self.assertEqual(run.log[-1], "supervisor: all workers joined")
        for worker in ("fetch", "parse", "index"):
            self.assertLess(run.log.index(f"{worker}: done"), len(run.log) - 1)

    def test_countdown_scenario_lifts_off(self) -> None:
        runner = CoroutineRunner()
        run = SCENARIOS["countdown"](runner)

        FixedStepLoop(runner).run_for(10.0)

        self.assertEqual(run.log[0], "alpha: 3")
        for label in ("alpha", "bravo", "charlie"):
            self.assertIn(f"{label}: liftoff", run.log)
        self.assertEqual(runner.count, 0)

    def test_run_scenario_drives_selected_scenario(self) -> None:
        with contextlib.redirect_stdout(io.StringIO()) as out:
            loop, run = run_scenario("walk", LoopConfig(trace=True), duration_s=20.0)

        self.assertIn("Running 'walk' scenario", out.getvalue())
        self.assertFalse(run.is_running)
        self.assertGreater(loop.stats.ticks, 0)
        self.assertTrue(loop.runner.trace_log)


if __name__ == "__main__":
    unittest.main()
