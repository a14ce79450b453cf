"""Tests for the baseline static-threshold scenario."""

from dataclasses import replace

from offload_sim.config import ControllerKind, SimulationConfig
from offload_sim.scenarios.baseline import REFERENCE_THRESHOLDS, run_baseline_scenario


class TestBaselineScenario:
    def test_reference_thresholds(self) -> None:
        assert REFERENCE_THRESHOLDS == (2, 4, 8, 16, 32, 64)

    def test_runs_all_turns(self, small_config: SimulationConfig) -> None:
        clock = run_baseline_scenario(small_config)

        assert clock.current_turn == small_config.turns
        assert clock.controller.threshold == small_config.offload_threshold

    def test_partial_run(self, small_config: SimulationConfig) -> None:
        clock = run_baseline_scenario(small_config, turns=4)

        assert clock.current_turn == 4

    def test_lower_threshold_offloads_more(self, small_config: SimulationConfig) -> None:
        base = replace(small_config, controller=ControllerKind.STATIC, slow_path_capacity=400)

        low = run_baseline_scenario(replace(base, offload_threshold=2)).finalize_metrics()
        high = run_baseline_scenario(replace(base, offload_threshold=-1)).finalize_metrics()

        assert low.total_fast_path > high.total_fast_path == 0
        assert low.total_dropped < high.total_dropped
