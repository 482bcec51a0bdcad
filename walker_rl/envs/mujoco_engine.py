# mujoco_engine.py  (MuJoCo / dm_control implementation of the engine protocol)
from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Tuple

import mujoco
import numpy as np
from dm_control import mjcf

from walker_rl.envs.engine import ArticulatedSystem, Contact, ControlMode, World
from walker_rl.envs.observation import quat_to_rotmat

WORLD_BODY_ID = 0


class WalkerPhysics(mjcf.Physics):
    """dm_control physics with the few helpers the robot adapter needs."""

    def free_joint_id(self) -> int:
        free = np.nonzero(self.model.jnt_type == int(mujoco.mjtJoint.mjJNT_FREE))[0]
        if free.size == 0 or int(free[0]) != 0:
            raise RuntimeError("No free joint at the root; base is fixed.")
        return int(free[0])

    def base_rotmat_body_to_world(self) -> np.ndarray:
        return quat_to_rotmat(self.data.qpos[3:7])

    def body_name(self, body_id: int) -> str:
        return mujoco.mj_id2name(self.model.ptr, mujoco.mjtObj.mjOBJ_BODY, int(body_id)) or ""


class MujocoRobot(ArticulatedSystem):
    """
    Floating-base robot on top of `WalkerPhysics`.

    MuJoCo stores the free-joint angular velocity in the body frame; this class
    reads and writes it in the world frame so gc/gv follow the `ArticulatedSystem`
    convention. PD torques are computed here every substep and written to
    `qfrc_applied` (joint block only, the base is never actuated).
    """

    def __init__(self, world: "MujocoWorld"):
        self._world = world
        physics = world.physics
        physics.free_joint_id()
        self._gc_dim = int(physics.model.nq)
        self._gv_dim = int(physics.model.nv)
        if self._gc_dim != self._gv_dim + 1:
            raise RuntimeError(f"Expected nq == nv + 1 for a floating base with hinge joints, "
                               f"got nq={self._gc_dim}, nv={self._gv_dim}.")

        self._mode = ControlMode.FORCE_AND_TORQUE
        self._p_gain = np.zeros(self._gv_dim)
        self._d_gain = np.zeros(self._gv_dim)
        self._pos_target = np.zeros(self._gc_dim)
        self._vel_target = np.zeros(self._gv_dim)
        self._feedforward = np.zeros(self._gv_dim)
        self._last_tau = np.zeros(self._gv_dim)

    @property
    def physics(self) -> WalkerPhysics:
        return self._world.physics

    # --- model queries ---
    @property
    def control_mode(self) -> ControlMode:
        return self._mode

    @control_mode.setter
    def control_mode(self, mode: ControlMode):
        self._mode = ControlMode(mode)

    def generalized_coordinate_dim(self) -> int:
        return self._gc_dim

    def degrees_of_freedom(self) -> int:
        return self._gv_dim

    def body_index(self, name: str) -> int:
        bid = mujoco.mj_name2id(self.physics.model.ptr, mujoco.mjtObj.mjOBJ_BODY, name)
        if bid < 0:
            raise KeyError(f"No body named {name!r}.")
        return int(bid)

    # --- control inputs ---
    def set_pd_gains(self, p_gain, d_gain) -> None:
        self._p_gain = self._checked(p_gain, self._gv_dim, "p_gain")
        self._d_gain = self._checked(d_gain, self._gv_dim, "d_gain")

    def set_pd_target(self, pos_target, vel_target) -> None:
        self._pos_target = self._checked(pos_target, self._gc_dim, "pos_target")
        self._vel_target = self._checked(vel_target, self._gv_dim, "vel_target")

    def set_generalized_force(self, tau) -> None:
        self._feedforward = self._checked(tau, self._gv_dim, "generalized_force")

    def get_generalized_force(self) -> np.ndarray:
        return self._last_tau.copy()

    def pd_torque(self) -> np.ndarray:
        tau = self._feedforward.copy()
        if self._mode is ControlMode.PD_PLUS_FEEDFORWARD_TORQUE:
            q = self.physics.data.qpos[7:]
            qd = self.physics.data.qvel[6:]
            tau[6:] += self._p_gain[6:] * (self._pos_target[7:] - q) \
                     + self._d_gain[6:] * (self._vel_target[6:] - qd)
        return tau

    def apply_control(self) -> None:
        tau = self.pd_torque()
        self.physics.data.qfrc_applied[:] = tau
        self._last_tau = tau

    # --- state ---
    def set_state(self, gc, gv) -> None:
        gc = self._checked(gc, self._gc_dim, "gc")
        gv = self._checked(gv, self._gv_dim, "gv")
        R = quat_to_rotmat(gc[3:7])
        qvel = gv.copy()
        qvel[3:6] = R.T @ gv[3:6]
        with self.physics.reset_context():
            self.physics.data.qpos[:] = gc
            self.physics.data.qvel[:] = qvel

    def get_state(self) -> Tuple[np.ndarray, np.ndarray]:
        gc = np.array(self.physics.data.qpos, dtype=np.float64)
        gv = np.array(self.physics.data.qvel, dtype=np.float64)
        gv[3:6] = quat_to_rotmat(gc[3:7]) @ gv[3:6]
        return gc, gv

    def get_contacts(self) -> List[Contact]:
        """One entry per robot body per active contact; the world body (ground) is never reported."""
        physics = self.physics
        ncon = int(physics.data.ncon)
        if ncon == 0:
            return []
        geom_bodyid = physics.model.geom_bodyid
        contacts = physics.data.contact
        out = []
        for i in range(ncon):
            c = contacts[i]
            for g in (int(c.geom1), int(c.geom2)):
                b = int(geom_bodyid[g])
                if b != WORLD_BODY_ID:
                    out.append(Contact(local_body_index=b))
        return out

    @staticmethod
    def _checked(x, size: int, name: str) -> np.ndarray:
        v = np.asarray(x, dtype=np.float64).reshape(-1).copy()
        if v.size != size:
            raise ValueError(f"{name} expects {size} entries, got {v.size}")
        return v


class MujocoWorld(World):
    """
    World holding a single robot loaded from an MJCF file.

    The MJCF tree is kept around so `add_ground()` can extend it; every change
    recompiles the physics and restores the robot state.
    """

    def __init__(self, time_step: Optional[float] = None):
        self._mjcf_root: Optional[mjcf.RootElement] = None
        self._physics: Optional[WalkerPhysics] = None
        self._robot: Optional[MujocoRobot] = None
        self._dt = None if time_step is None else float(time_step)

    @property
    def physics(self) -> Optional[WalkerPhysics]:
        return self._physics

    @property
    def mjcf_model(self) -> Optional[mjcf.RootElement]:
        return self._mjcf_root

    def add_articulated_system(self, resource) -> MujocoRobot:
        if self._robot is not None:
            raise RuntimeError("World already holds a robot.")
        path = Path(resource)
        if not path.is_file():
            raise FileNotFoundError(f"Robot description not found: {path}")
        self._mjcf_root = mjcf.from_path(str(path))
        self._compile()
        self._robot = MujocoRobot(self)
        return self._robot

    def add_ground(self) -> None:
        if self._mjcf_root is None:
            raise RuntimeError("Load a robot before adding the ground.")
        wb = self._mjcf_root.worldbody
        wb.add("light", name="ground_light", pos=[0, 0, 4], dir=[0, 0, -1], directional=True)
        # robot geoms have conaffinity=0, so the ground must accept contacts itself
        wb.add("geom", name="ground", type="plane", size=[50, 50, 0.1], contype=1, conaffinity=1,
               rgba=[0.5, 0.5, 0.5, 1], friction=[0.8, 0.005, 0.0001])
        self._recompile_keep_state()

    def set_time_step(self, dt: float) -> None:
        self._dt = float(dt)
        if self._physics is not None:
            self._physics.model.opt.timestep = self._dt

    def get_time_step(self) -> float:
        if self._physics is not None:
            return float(self._physics.model.opt.timestep)
        return float(self._dt or 0.0)

    def integrate(self) -> None:
        if self._robot is not None:
            self._robot.apply_control()
        self._physics.step()

    # --- internals ---
    def _compile(self) -> None:
        self._physics = WalkerPhysics.from_mjcf_model(self._mjcf_root)
        if self._dt is not None:
            self._physics.model.opt.timestep = self._dt

    def _recompile_keep_state(self) -> None:
        old = self._physics
        qpos = np.array(old.data.qpos) if old is not None else None
        qvel = np.array(old.data.qvel) if old is not None else None
        self._compile()
        if qpos is not None:
            with self._physics.reset_context():
                self._physics.data.qpos[:] = qpos
                self._physics.data.qvel[:] = qvel
