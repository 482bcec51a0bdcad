# state.py  (generalized state and PD target buffers)
from __future__ import annotations
from dataclasses import dataclass

import numpy as np


@dataclass
class GeneralizedState:
    """
    gc/gv pair. Buffers are written in place by the owning environment only;
    `copy()` hands out snapshots.
    """
    positions: np.ndarray
    velocities: np.ndarray

    @classmethod
    def zeros(cls, gc_dim: int, gv_dim: int) -> "GeneralizedState":
        return cls(np.zeros(gc_dim, dtype=np.float64), np.zeros(gv_dim, dtype=np.float64))

    @property
    def gc_dim(self) -> int:
        return int(self.positions.size)

    @property
    def gv_dim(self) -> int:
        return int(self.velocities.size)

    @property
    def n_joints(self) -> int:
        return self.gv_dim - 6

    def assign(self, positions, velocities) -> None:
        self.positions[:] = positions
        self.velocities[:] = velocities

    def copy(self) -> "GeneralizedState":
        return GeneralizedState(self.positions.copy(), self.velocities.copy())


@dataclass
class PdTargets:
    """position_target is gc-sized with only the joint tail written; velocity_target stays zero."""
    position_target: np.ndarray
    velocity_target: np.ndarray

    @classmethod
    def zeros(cls, gc_dim: int, gv_dim: int) -> "PdTargets":
        return cls(np.zeros(gc_dim, dtype=np.float64), np.zeros(gv_dim, dtype=np.float64))

    def set_joint_targets(self, joint_target: np.ndarray) -> None:
        n = int(np.asarray(joint_target).size)
        self.position_target[self.position_target.size - n:] = joint_target


def default_init_pose(gc_dim: int, stance=None) -> np.ndarray:
    """`stance` when it fits the model, else base at 0.5 m, identity orientation, zero joints."""
    if stance is not None and len(stance) == gc_dim:
        return np.asarray(stance, dtype=np.float64).copy()
    pose = np.zeros(gc_dim, dtype=np.float64)
    pose[2] = 0.50
    pose[3] = 1.0
    return pose
