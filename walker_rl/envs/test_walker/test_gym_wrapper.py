# tests/test_gym_wrapper.py
from __future__ import annotations

import numpy as np

from walker_rl.envs.engine import Contact
from walker_rl.envs.gym_wrapper import WalkerGymEnv, make_gym_env


def test_spaces_match_env(make_fake_env):
    env, _ = make_fake_env()
    gym_env = WalkerGymEnv(env)
    assert gym_env.action_space.shape == (12,)
    assert gym_env.observation_space.shape == (34,)
    assert gym_env.observation_space.dtype == np.float32

    obs, info = gym_env.reset(seed=3)
    assert obs.shape == (34,) and obs.dtype == np.float32
    assert gym_env.observation_space.contains(obs)
    assert info["step"] == 0


def test_truncation_after_max_episode_steps(make_fake_env):
    env, _ = make_fake_env()
    gym_env = WalkerGymEnv(env, max_episode_steps=3)
    gym_env.reset()
    flags = [gym_env.step(np.zeros(12))[2:4] for _ in range(3)]
    assert flags == [(False, False), (False, False), (False, True)]


def test_termination_adds_terminal_reward(make_fake_env):
    env, world = make_fake_env(reward_cfg={"terminal_reward_coeff": -10.0})
    gym_env = WalkerGymEnv(env, max_episode_steps=100)
    gym_env.reset()

    _, r_alive, terminated, _, _ = gym_env.step(np.zeros(12))
    assert not terminated

    world.robot.contacts = [Contact(1)]
    _, r_dead, terminated, truncated, info = gym_env.step(np.zeros(12))
    assert terminated and not truncated
    assert info["terminal_reward"] == -10.0
    assert np.isclose(r_dead, r_alive - 10.0)


def test_returned_observation_is_a_copy(make_fake_env):
    env, _ = make_fake_env()
    gym_env = WalkerGymEnv(env)
    obs0, _ = gym_env.reset()
    obs1, *_ = gym_env.step(np.ones(12))
    assert not np.shares_memory(obs0, obs1)
    assert not np.array_equal(obs0, obs1)


def test_render_without_renderable_physics(make_fake_env):
    env, _ = make_fake_env()
    assert WalkerGymEnv(env).render() is None


def test_make_gym_env_from_packaged_cfg():
    gym_env = make_gym_env(seed=1)
    try:
        assert gym_env.max_episode_steps == 1000
        obs, _ = gym_env.reset()
        obs, reward, terminated, truncated, _ = gym_env.step(gym_env.action_space.sample() * 0.0)
        assert obs.shape == (34,)
        assert np.isfinite(reward)
    finally:
        gym_env.close()
