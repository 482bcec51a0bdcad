# tests/test_loader.py
from __future__ import annotations

import numpy as np
import pytest

from conftest import FakeWorld
from walker_rl.envs.loader import (available_robots, build_cfg, make_env, resolve_resource,
                                   route_overrides)


def test_packaged_robot_is_registered(anymal_xml):
    assert "anymal_lite" in available_robots()
    assert str(resolve_resource("anymal_lite")) == anymal_xml


def test_resource_by_path(anymal_xml):
    assert str(resolve_resource(anymal_xml)) == anymal_xml
    with pytest.raises(ValueError):
        resolve_resource("no_such_robot")


def test_build_cfg_overrides(tmp_path):
    cfg = build_cfg()
    assert cfg["environment"]["control_dt"] == 0.01
    assert cfg["reward"]["velocity_cap"] == 4.0

    user = tmp_path / "cfg.yaml"
    user.write_text("seed: 5\nreward:\n  terminal_reward_coeff: -2.0\n")
    cfg = build_cfg(user, seed=None, visualize=True)
    assert cfg["seed"] == 5
    assert cfg["visualize"] is True
    assert cfg["reward"] == {"terminal_reward_coeff": -2.0}


def test_make_env_reads_sections(tmp_path, anymal_xml):
    user = tmp_path / "cfg.yaml"
    user.write_text(
        "resource: anymal_lite\n"
        "environment:\n  simulation_dt: 0.002\n  control_dt: 0.01\n"
        "reward:\n  terminal_reward_coeff: -7.0\n"
    )
    world = FakeWorld()
    env = make_env(user, world=world)
    assert world.resource == anymal_xml
    assert env.get_simulation_time_step() == 0.002
    assert env.substeps == 5
    assert env.terminal_reward_coeff == -7.0


def test_flat_keyword_overrides_reach_their_sections():
    world = FakeWorld()
    env = make_env(world=world, control_dt=0.02, simulation_dt=0.001,
                   terminal_reward_coeff=-5.0, init_noise_std=0.1, seed=3)
    assert env.get_control_time_step() == 0.02
    assert env.get_simulation_time_step() == 0.001
    assert world.dt == 0.001
    assert env.substeps == 20
    assert env.terminal_reward_coeff == -5.0

    env.reset()
    assert not np.array_equal(env.state.positions[7:], env.initial_state.positions[7:])


def test_route_overrides_nests_flat_keys():
    routed = route_overrides({"kp": 80.0, "velocity_cap": 2.0, "max_episode_steps": 50,
                              "seed": 1, "visualize": None})
    assert routed == {"environment": {"kp": 80.0}, "reward": {"velocity_cap": 2.0},
                      "gym": {"max_episode_steps": 50}, "seed": 1}
    cfg = build_cfg(control_dt=0.02)
    assert cfg["environment"]["control_dt"] == 0.02
    assert cfg["environment"]["simulation_dt"] == 0.0025   # YAML value kept


def test_unknown_override_rejected():
    with pytest.raises(ValueError, match="contrl_dt"):
        build_cfg(contrl_dt=0.02)
