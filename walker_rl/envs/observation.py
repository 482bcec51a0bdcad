# observation.py  (body-relative observation for the walker)
from __future__ import annotations
from typing import Tuple

import numpy as np

BASE_OBS_DIM = 1 + 3 + 3 + 3  # height, up-row, body lin vel, body ang vel


def observation_dim(n_joints: int) -> int:
    return BASE_OBS_DIM + 2 * int(n_joints)


def quat_to_rotmat(quat) -> np.ndarray:
    """
    Rotation matrix (body -> world) of a unit quaternion given as (w, x, y, z).
    The quaternion is normalized first; a zero quaternion maps to identity.
    """
    q = np.asarray(quat, dtype=np.float64).reshape(4)
    n = np.linalg.norm(q)
    if n == 0.0:
        return np.eye(3)
    w, x, y, z = q / n
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - w * z),     2 * (x * z + w * y)],
        [2 * (x * y + w * z),     1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
        [2 * (x * z - w * y),     2 * (y * z + w * x),     1 - 2 * (x * x + y * y)],
    ], dtype=np.float64)


def body_velocities(R: np.ndarray, velocities: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """World-frame base twist -> body frame: (R^T v_lin, R^T v_ang)."""
    gv = np.asarray(velocities, dtype=np.float64)
    R_wb = R.T
    return R_wb @ gv[0:3], R_wb @ gv[3:6]


def build_observation(positions, velocities, n_joints: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Observation (float64) plus the body-frame linear and angular base velocities.

    Layout: [base height (1), third row of R (3), joint angles (n),
             body lin vel (3), body ang vel (3), joint velocities (n)].
    """
    gc = np.asarray(positions, dtype=np.float64).reshape(-1)
    gv = np.asarray(velocities, dtype=np.float64).reshape(-1)
    if gc.size != n_joints + 7 or gv.size != n_joints + 6:
        raise ValueError(f"State size mismatch: gc={gc.size}, gv={gv.size}, n_joints={n_joints}")

    R = quat_to_rotmat(gc[3:7])
    lin_b, ang_b = body_velocities(R, gv)

    ob = np.concatenate([
        gc[2:3],          # body height
        R[2, :],          # body orientation
        gc[7:],           # joint angles
        lin_b, ang_b,     # body linear & angular velocity
        gv[6:],           # joint velocity
    ])

    expected = observation_dim(n_joints)
    if ob.size != expected:
        raise ValueError(f"[build_observation] got {ob.size} dims, expected {expected}.")
    return ob, lin_b, ang_b
