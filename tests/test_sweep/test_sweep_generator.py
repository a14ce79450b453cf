import json
from random import Random

from offload_sim.config import ControllerKind, SimulationConfig, SketchConfig
from offload_sim.sweep.generator import (
    config_to_dict,
    describe,
    describe_overrides,
    expand_grid,
    generate_run_id,
)


def test_generate_run_id_returns_string() -> None:
    run_id = generate_run_id(Random(42))
    assert isinstance(run_id, str)
    assert run_id.count("-") >= 2


def test_generate_run_id_deterministic_with_same_seed() -> None:
    assert generate_run_id(Random(42)) == generate_run_id(Random(42))


def test_expand_grid_empty_is_one_base_point() -> None:
    assert expand_grid({}) == [{}]


def test_expand_grid_cartesian_product_in_key_order() -> None:
    points = expand_grid(
        {"controller": ["static", "reactive"], "offload_threshold": [4, 16, 64]},
    )

    assert len(points) == 6
    assert points[:3] == [
        {"controller": "static", "offload_threshold": 4},
        {"controller": "static", "offload_threshold": 16},
        {"controller": "static", "offload_threshold": 64},
    ]
    assert points[3]["controller"] == "reactive"


def test_expand_grid_keeps_unknown_values_for_later() -> None:
    assert expand_grid({"controller": ["static", "bogus"]}) == [
        {"controller": "static"},
        {"controller": "bogus"},
    ]


def test_describe_overrides() -> None:
    assert describe_overrides({"controller": "bogus", "turns": 5}) == "controller=bogus turns=5"
    assert describe_overrides({}) == "base"


def test_config_to_dict_is_json_serializable() -> None:
    config = SimulationConfig(controller=ControllerKind.SKETCH)
    d = config_to_dict(config)

    json_str = json.dumps(d)
    assert isinstance(json_str, str)
    assert d["controller"] == "SKETCH"
    assert d["rejection_window"] == "CURRENT"
    assert d["sketch"]["top_k"] == 128
    assert d["traffic"]["rat_sizes"][0] == [2, 0.4]


def test_describe_names_policy_tunables() -> None:
    assert describe(SimulationConfig(offload_threshold=8)) == "STATIC threshold=8"
    assert describe(
        SimulationConfig(controller=ControllerKind.PROPORTIONAL, alpha=0.5)
    ) == "PROPORTIONAL threshold=16 alpha=0.5 omega=0.5"
    assert describe(
        SimulationConfig(controller=ControllerKind.SKETCH, sketch=SketchConfig(top_k=8))
    ) == "SKETCH k=8 h=4 s=4096 w=4"
