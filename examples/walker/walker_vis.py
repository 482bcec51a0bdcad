# walker_vis.py
from __future__ import annotations
import os, sys
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.join(current_dir, '../..')
sys.path.append(project_root)

import numpy as np

from walker_rl.envs.gym_wrapper import make_gym_env
from walker_rl.envs.loader import make_env
from walker_rl.utils.log_msgs import info_msg, warn_msg


def random_policy(rng, dim, scale=0.5):
    return lambda: scale * rng.standard_normal(dim)


def viewer_test(steps: int = 500, record: bool = False):
    """Random actions with the passive viewer open; optionally record a gif."""
    env = make_env(visualize=True)
    policy = random_policy(np.random.default_rng(0), env.get_action_dim())

    env.reset()
    if record:
        env.start_recording_video("_gifs/walker_random.gif")
    ret = 0.0
    for i in range(steps):
        ret += env.step(policy())
        done, terminal_reward = env.is_terminal_state()
        if done:
            warn_msg(f"step {i} - non-foot contact, terminal reward {terminal_reward}")
            ret += terminal_reward
            env.reset()
        if i % 100 == 0:
            info_msg(f"step {i} - height: {env.state.positions[2]:.3f}  vx: {env.body_linear_velocity[0]:.3f}")
    if record:
        env.stop_recording_video()
    info_msg(f"return over {steps} steps: {ret:.3f}")
    env.close()


def gym_rollout(episodes: int = 2):
    env = make_gym_env(seed=0)
    for ep in range(episodes):
        obs, _ = env.reset(seed=ep)
        ret, done, info = 0.0, False, {}
        while not done:
            obs, reward, terminated, truncated, info = env.step(env.action_space.sample() * 0.3)
            ret += reward
            done = terminated or truncated
        info_msg(f"episode {ep}: steps={info['step']}  return={ret:.3f}")
    env.close()


if __name__ == "__main__":
    show_viewer = True
    save_gif = False

    if show_viewer:
        viewer_test(record=save_gif)
    else:
        gym_rollout()
