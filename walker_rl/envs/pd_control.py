# pd_control.py  (PD gains and action normalization)
from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from walker_rl.utils.utils import as_vector


@dataclass
class PdGains:
    """gv-sized gains; the six base entries are always zero (the base is not actuated)."""
    p_gain: np.ndarray
    d_gain: np.ndarray

    @classmethod
    def default(cls, gv_dim: int, p: float = 50.0, d: float = 0.2) -> "PdGains":
        p_gain = np.zeros(gv_dim, dtype=np.float64)
        d_gain = np.zeros(gv_dim, dtype=np.float64)
        p_gain[6:] = float(p)
        d_gain[6:] = float(d)
        return cls(p_gain, d_gain)

    @classmethod
    def from_arrays(cls, p_gain, d_gain, gv_dim: int) -> "PdGains":
        p = as_vector(p_gain, gv_dim, "p_gain")
        d = as_vector(d_gain, gv_dim, "d_gain")
        p[:6] = 0.0
        d[:6] = 0.0
        return cls(p, d)


class ActionNormalizer:
    """
    Maps a policy action to joint-angle targets: target = action * std + mean.
    """

    def __init__(self, mean, std):
        mean = np.asarray(mean, dtype=np.float64).reshape(-1).copy()
        std = as_vector(std, mean.size, "action_std")
        if np.any(std <= 0.0):
            raise ValueError(f"action_std must be strictly positive, got min {std.min():.4g}")
        self.mean = mean
        self.std = std

    @property
    def dim(self) -> int:
        return int(self.mean.size)

    def denormalize(self, action) -> np.ndarray:
        a = as_vector(action, self.dim, "action")
        return a * self.std + self.mean

