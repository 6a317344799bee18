"""Fixed-step tick loop, configuration and demo scenarios for the runner."""

from tick_driver.clock import FixedStepLoop
from tick_driver.config import LoopConfig, load_loop_config
from tick_driver.stats import RunStats

__all__ = ["FixedStepLoop", "LoopConfig", "RunStats", "load_loop_config"]
