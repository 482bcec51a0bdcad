# walker_env.py  (legged-robot locomotion environment)
from __future__ import annotations
import contextlib
from typing import Dict, Optional, Tuple

import numpy as np
from dm_env import specs

from walker_rl.envs.engine import ArticulatedSystem, ControlMode, World
from walker_rl.envs.mujoco_engine import MujocoWorld
from walker_rl.envs.observation import build_observation, observation_dim
from walker_rl.envs.pd_control import ActionNormalizer, PdGains
from walker_rl.envs.reward import FootContactChecker, RewardCoeffs, compute_reward
from walker_rl.envs.state import GeneralizedState, PdTargets, default_init_pose
from walker_rl.envs.visualization import VisualizationBridge
from walker_rl.envs.walker_config import ENV_CFG, REWARD_CFG
from walker_rl.utils.log_msgs import error_msg, warn_msg
from walker_rl.utils.utils import as_vector, make_rng, merge_cfg

SUBSTEP_EPS = 1e-10  # control_dt / simulation_dt is truncated after adding this


def _count_substeps(control_dt: float, simulation_dt: float) -> int:
    if control_dt <= 0.0 or simulation_dt <= 0.0:   # other time step not set yet
        return 0
    n = int(control_dt / simulation_dt + SUBSTEP_EPS)
    if n < 1:
        raise ValueError(f"control_dt={control_dt} is shorter than simulation_dt={simulation_dt}.")
    return n


class WalkerEnv:
    """
    Quadruped locomotion environment on top of a physics `World`.

    The policy commands joint-angle PD targets in normalized units
    (target = action * action_std + action_mean). Each `step` integrates a fixed
    number of simulation substeps and returns the reward; the observation and the
    termination flag are queried separately through `observe()` and
    `is_terminal_state()`.

    Parameters
    ----------
    resource_dir : str
        Robot description handed to `world.add_articulated_system`.
    visualizable : bool
        Launch the visualization bridge and focus it on the robot base.
    world : World, optional
        Physics engine; defaults to a fresh `MujocoWorld`.
    visualizer : optional
        Bridge used when `visualizable` is set; defaults to `VisualizationBridge`.
    cfg, reward_cfg : dict, optional
        Overrides for `ENV_CFG` / `REWARD_CFG`.
    seed : int, optional
        Seed of the per-instance generator used for stochastic resets.

    Raises
    ------
    RuntimeError
        The foot or base bodies named in the config are missing from the model.
    """

    def __init__(self, resource_dir: str, visualizable: bool = False, *,
                 world: Optional[World] = None,
                 visualizer=None,
                 cfg: Optional[Dict] = None,
                 reward_cfg: Optional[Dict] = None,
                 seed: Optional[int] = None):
        self.resource_dir = str(resource_dir)
        self.visualizable = bool(visualizable)
        self._cfg = merge_cfg(ENV_CFG, cfg)
        self._reward = RewardCoeffs.from_cfg(merge_cfg(REWARD_CFG, reward_cfg))
        self._rng = make_rng(seed)
        self._init_noise_std = float(self._cfg["init_noise_std"])

        self._world: World = world if world is not None else MujocoWorld()
        self._viz = None

        self._create_world_and_robot()
        self._initialize_containers()
        self._set_pd_gains()
        self._initialize_observation_space()

        self._simulation_dt = 0.0
        self._control_dt = 0.0
        self.set_simulation_time_step(self._cfg["simulation_dt"])
        self.set_control_time_step(self._cfg["control_dt"])

        if self.visualizable:
            self._initialize_visualization(visualizer)

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------
    def _create_world_and_robot(self) -> None:
        self._robot: ArticulatedSystem = self._world.add_articulated_system(self.resource_dir)
        self._robot.control_mode = ControlMode.PD_PLUS_FEEDFORWARD_TORQUE
        self._world.add_ground()
        self.gc_dim = int(self._robot.generalized_coordinate_dim())
        self.gv_dim = int(self._robot.degrees_of_freedom())
        self.n_joints = self.gv_dim - 6

    def _initialize_containers(self) -> None:
        self._state = GeneralizedState.zeros(self.gc_dim, self.gv_dim)
        self._targets = PdTargets.zeros(self.gc_dim, self.gv_dim)
        stance = self._cfg.get("init_pose")
        if stance is not None and len(stance) != self.gc_dim:
            warn_msg(f"Configured init_pose has {len(stance)} entries but the model has gc_dim={self.gc_dim}; "
                     f"falling back to a zero-joint stance.")
        self._gc_init = default_init_pose(self.gc_dim, stance)
        self._gv_init = np.zeros(self.gv_dim, dtype=np.float64)

    def _set_pd_gains(self) -> None:
        self._gains = PdGains.default(self.gv_dim, p=self._cfg["kp"], d=self._cfg["kd"])
        self._robot.set_pd_gains(self._gains.p_gain, self._gains.d_gain)
        self._robot.set_generalized_force(np.zeros(self.gv_dim))

    def _initialize_observation_space(self) -> None:
        self.ob_dim = observation_dim(self.n_joints)
        self.action_dim = self.n_joints
        self._ob = np.zeros(self.ob_dim, dtype=np.float64)
        self._body_lin_vel = np.zeros(3)
        self._body_ang_vel = np.zeros(3)

        std = np.full(self.action_dim, float(self._cfg["action_std"]))
        self._normalizer = ActionNormalizer(self._gc_init[7:], std)

        try:
            foot_ids = [self._robot.body_index(n) for n in self._cfg["foot_bodies"]]
        except (KeyError, ValueError) as e:
            error_msg(f"Foot body lookup failed in {self.resource_dir}: {e}")
            raise RuntimeError("Could not find foot bodies; did the model change?") from e
        self._terminal = FootContactChecker(foot_ids, self._reward.terminal)

    def _initialize_visualization(self, visualizer=None) -> None:
        self._viz = visualizer if visualizer is not None else VisualizationBridge(self._world)
        self._viz.launch()
        try:
            base_id = self._robot.body_index(self._cfg["base_body"])
        except (KeyError, ValueError) as e:
            raise RuntimeError(f"Could not find base body {self._cfg['base_body']!r}; did the model change?") from e
        self._viz.focus_on(base_id)

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------
    def configure(self, init_pose, init_vel, action_mean, action_std, p_gain, d_gain) -> None:
        """
        Replace the defaults in one go. Every vector must match its dimension
        exactly; on any mismatch nothing is changed and ValueError is raised.
        """
        gc_init = as_vector(init_pose, self.gc_dim, "init_pose")
        gv_init = as_vector(init_vel, self.gv_dim, "init_vel")
        mean = as_vector(action_mean, self.action_dim, "action_mean")
        normalizer = ActionNormalizer(mean, action_std)
        gains = PdGains.from_arrays(p_gain, d_gain, self.gv_dim)

        self._gc_init, self._gv_init = gc_init, gv_init
        self._normalizer = normalizer
        self._gains = gains
        self._robot.set_pd_gains(gains.p_gain, gains.d_gain)

    def set_seed(self, seed: int) -> None:
        self._rng = make_rng(seed)

    def set_simulation_time_step(self, dt: float) -> None:
        dt = float(dt)
        if not dt > 0.0:
            raise ValueError(f"simulation time step must be positive, got {dt}")
        _count_substeps(self._control_dt, dt)
        self._simulation_dt = dt
        self._world.set_time_step(dt)

    def set_control_time_step(self, dt: float) -> None:
        dt = float(dt)
        if not dt > 0.0:
            raise ValueError(f"control time step must be positive, got {dt}")
        n = _count_substeps(dt, self._simulation_dt)
        self._control_dt = dt
        ratio = self._control_dt / self._simulation_dt
        if abs(ratio - round(ratio)) > 1e-6:
            warn_msg(f"control_dt={dt} is not a multiple of simulation_dt={self._simulation_dt}; "
                     f"using {n} substeps per step.")

    def get_control_time_step(self) -> float:
        return self._control_dt

    def get_simulation_time_step(self) -> float:
        return self._simulation_dt

    @property
    def substeps(self) -> int:
        return _count_substeps(self._control_dt, self._simulation_dt)

    def get_ob_dim(self) -> int:
        return self.ob_dim

    def get_action_dim(self) -> int:
        return self.action_dim

    def get_world(self) -> World:
        return self._world

    def action_spec(self) -> specs.Array:
        return specs.Array(shape=(self.action_dim,), dtype=np.float32, name="action")

    def observation_spec(self) -> specs.Array:
        return specs.Array(shape=(self.ob_dim,), dtype=np.float32, name="observations")

    # ------------------------------------------------------------------
    # read-only views
    # ------------------------------------------------------------------
    @property
    def robot(self) -> ArticulatedSystem:
        return self._robot

    @property
    def state(self) -> GeneralizedState:
        return self._state.copy()

    @property
    def initial_state(self) -> GeneralizedState:
        return GeneralizedState(self._gc_init.copy(), self._gv_init.copy())

    @property
    def pd_targets(self) -> PdTargets:
        return PdTargets(self._targets.position_target.copy(), self._targets.velocity_target.copy())

    @property
    def normalizer(self) -> ActionNormalizer:
        return self._normalizer

    @property
    def gains(self) -> PdGains:
        return self._gains

    @property
    def foot_indices(self) -> frozenset:
        return self._terminal.foot_indices

    @property
    def body_linear_velocity(self) -> np.ndarray:
        return self._body_lin_vel.copy()

    @property
    def body_angular_velocity(self) -> np.ndarray:
        return self._body_ang_vel.copy()

    @property
    def terminal_reward_coeff(self) -> float:
        return self._terminal.terminal_reward_coeff

    @terminal_reward_coeff.setter
    def terminal_reward_coeff(self, value: float) -> None:
        self._terminal.terminal_reward_coeff = float(value)

    # ------------------------------------------------------------------
    # episode
    # ------------------------------------------------------------------
    def init(self) -> None:
        self.reset()

    def reset(self) -> None:
        gc = self._gc_init
        if self._init_noise_std > 0.0:
            gc = gc.copy()
            gc[7:] += self._rng.normal(0.0, self._init_noise_std, size=self.n_joints)
        self._robot.set_state(gc, self._gv_init)
        self._update_observation()

    def step(self, action) -> float:
        n_substeps = self.substeps
        self._targets.set_joint_targets(self._normalizer.denormalize(action))
        self._robot.set_pd_target(self._targets.position_target, self._targets.velocity_target)

        for _ in range(n_substeps):
            with self._render_lock():
                self._world.integrate()
        if self._viz is not None:
            self._viz.sync()

        self._update_observation()
        return compute_reward(self._robot.get_generalized_force(), self._body_lin_vel[0], self._reward)

    def _render_lock(self):
        if self._viz is None:
            return contextlib.nullcontext()
        return self._viz.lock()

    def _update_observation(self) -> None:
        gc, gv = self._robot.get_state()
        self._state.assign(gc, gv)
        ob, lin_b, ang_b = build_observation(self._state.positions, self._state.velocities, self.n_joints)
        self._ob[:] = ob
        self._body_lin_vel[:] = lin_b
        self._body_ang_vel[:] = ang_b

    def observe(self, buffer: Optional[np.ndarray] = None) -> np.ndarray:
        """Write the current observation (float32) into `buffer`, or return a new array."""
        if buffer is None:
            return self._ob.astype(np.float32)
        if buffer.size != self.ob_dim:
            raise ValueError(f"observation buffer expects {self.ob_dim} entries, got {buffer.size}")
        buffer[...] = self._ob.reshape(buffer.shape)
        return buffer

    def is_terminal_state(self) -> Tuple[bool, float]:
        return self._terminal.is_terminal(self._robot.get_contacts())

    def curriculum_update(self) -> None:
        """Hook for progressive task difficulty; subclasses override."""

    # ------------------------------------------------------------------
    # visualization
    # ------------------------------------------------------------------
    def turn_off_visualization(self) -> None:
        if self._viz is not None:
            self._viz.hibernate()

    def turn_on_visualization(self) -> None:
        if self._viz is not None:
            self._viz.wakeup()

    def start_recording_video(self, video_name: str) -> None:
        if self._viz is not None:
            self._viz.start_recording_video(video_name)

    def stop_recording_video(self) -> None:
        if self._viz is not None:
            self._viz.stop_recording_video()

    def close(self) -> None:
        if self._viz is not None:
            self._viz.kill()
            self._viz = None
