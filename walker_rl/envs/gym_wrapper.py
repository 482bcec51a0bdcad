from __future__ import annotations
from pathlib import Path
from typing import Any, Optional, Tuple

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from walker_rl.envs.loader import build_cfg, make_env
from walker_rl.envs.walker_env import WalkerEnv


class WalkerGymEnv(gym.Env):
    """
    Gymnasium view of a `WalkerEnv`.

    - reset() -> (obs, info), step() -> (obs, reward, terminated, truncated, info)
    - terminated: a non-foot body touched something; the terminal reward is added
    - truncated: `max_episode_steps` control steps elapsed without termination
    """

    metadata = {"render_modes": ["rgb_array"]}

    def __init__(self, env: WalkerEnv, *, max_episode_steps: Optional[int] = None,
                 render_mode: Optional[str] = None) -> None:
        self.env = env
        self.max_episode_steps = None if max_episode_steps is None else int(max_episode_steps)
        self.render_mode = render_mode
        self._step_count = 0

        self.action_space = spaces.Box(low=-np.inf, high=np.inf, shape=(env.get_action_dim(),), dtype=np.float32)
        self.observation_space = spaces.Box(low=-np.inf, high=np.inf, shape=(env.get_ob_dim(),), dtype=np.float32)
        self._obs = np.zeros(env.get_ob_dim(), dtype=np.float32)

    # --------------- Gymnasium API ---------------
    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[dict] = None,
    ) -> Tuple[np.ndarray, dict]:
        super().reset(seed=seed, options=options)
        if seed is not None:
            self.env.set_seed(seed)
        self.env.reset()
        self._step_count = 0
        return self._observe(), {"step": 0}

    def step(self, action) -> Tuple[np.ndarray, float, bool, bool, dict]:
        action = np.asarray(action, dtype=np.float32)
        reward = float(self.env.step(action))
        self._step_count += 1

        terminated, terminal_reward = self.env.is_terminal_state()
        if terminated:
            reward += float(terminal_reward)
        truncated = (not terminated) and self.max_episode_steps is not None \
            and self._step_count >= self.max_episode_steps

        info = {
            "step": self._step_count,
            "forward_velocity": float(self.env.body_linear_velocity[0]),
            "terminal_reward": float(terminal_reward),
        }
        return self._observe(), reward, bool(terminated), bool(truncated), info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        physics = self.env.get_world().physics
        if physics is None:
            raise NotImplementedError("The physics backend of this env cannot render.")
        return physics.render(height=480, width=640, camera_id=-1)

    def close(self) -> None:
        self.env.close()

    # --------------- Internals ---------------
    def _observe(self) -> np.ndarray:
        self.env.observe(self._obs)
        return self._obs.copy()


def make_gym_env(cfg_path: Optional[str | Path] = None, *, render_mode: Optional[str] = None,
                 **overrides: Any) -> WalkerGymEnv:
    cfg = build_cfg(cfg_path, **overrides)
    max_steps = (cfg.get("gym") or {}).get("max_episode_steps")
    env = make_env(cfg_path, **overrides)
    return WalkerGymEnv(env, max_episode_steps=max_steps, render_mode=render_mode)
