# reward.py  (forward-velocity reward and fall detection)
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from walker_rl.envs.engine import Contact


@dataclass(frozen=True)
class RewardCoeffs:
    force: float = 4e-5          # penalty on ||generalized force||^2
    velocity: float = 0.3        # gain on forward body velocity
    velocity_cap: float = 4.0    # forward velocity is rewarded up to this value
    terminal: float = 0.0        # reported when the episode ends in a fall

    @classmethod
    def from_cfg(cls, cfg: dict) -> "RewardCoeffs":
        return cls(
            force=float(cfg.get("force_coeff", cls.force)),
            velocity=float(cfg.get("velocity_coeff", cls.velocity)),
            velocity_cap=float(cfg.get("velocity_cap", cls.velocity_cap)),
            terminal=float(cfg.get("terminal_reward_coeff", cls.terminal)),
        )


def compute_reward(generalized_force, forward_velocity: float, coeffs: RewardCoeffs = RewardCoeffs()) -> float:
    f = np.asarray(generalized_force, dtype=np.float64)
    effort = float(np.dot(f, f))
    return -coeffs.force * effort + coeffs.velocity * min(coeffs.velocity_cap, float(forward_velocity))


class FootContactChecker:
    """
    Episode ends as soon as a body outside the foot set touches anything.
    Pure query over the contacts handed in.
    """

    def __init__(self, foot_indices: Iterable[int], terminal_reward_coeff: float = 0.0):
        self.foot_indices = frozenset(int(i) for i in foot_indices)
        self.terminal_reward_coeff = float(terminal_reward_coeff)

    def is_terminal(self, contacts: Iterable[Contact]) -> Tuple[bool, float]:
        for contact in contacts:
            if int(contact.local_body_index) not in self.foot_indices:
                return True, self.terminal_reward_coeff
        return False, 0.0
