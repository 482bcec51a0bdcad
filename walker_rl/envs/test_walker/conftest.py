# fake physics engine + viewer so the env logic runs without a simulator
from __future__ import annotations
import contextlib
from pathlib import Path
from types import SimpleNamespace
from typing import List

import numpy as np
import pytest

from walker_rl.envs.engine import ArticulatedSystem, Contact, ControlMode, World
from walker_rl.envs.walker_env import WalkerEnv

ANYMAL_XML = Path(__file__).resolve().parents[2] / "assets" / "anymal_lite.xml"

LEGS = ("LF", "RF", "LH", "RH")
BODY_NAMES = ["world", "base"] + [f"{leg}_{part}" for leg in LEGS for part in ("HIP", "THIGH", "SHANK")]


class FakeRobot(ArticulatedSystem):
    """12-joint quadruped; joints track the PD target perfectly on each integrate()."""

    def __init__(self, n_joints: int = 12, body_names=None):
        self.n_joints = n_joints
        self.gc = np.zeros(n_joints + 7)
        self.gc[3] = 1.0
        self.gv = np.zeros(n_joints + 6)
        self.bodies = {n: i for i, n in enumerate(body_names or BODY_NAMES)}
        self.p_gain = np.zeros(n_joints + 6)
        self.d_gain = np.zeros(n_joints + 6)
        self.pos_target = np.zeros(n_joints + 7)
        self.vel_target = np.zeros(n_joints + 6)
        self.feedforward = np.zeros(n_joints + 6)
        self.tau = np.zeros(n_joints + 6)
        self.contacts: List[Contact] = []
        self.base_velocity_world = np.zeros(6)  # written into gv on every integrate()
        self._mode = ControlMode.FORCE_AND_TORQUE

    @property
    def control_mode(self):
        return self._mode

    @control_mode.setter
    def control_mode(self, mode):
        self._mode = mode

    def generalized_coordinate_dim(self): return self.gc.size
    def degrees_of_freedom(self): return self.gv.size

    def body_index(self, name):
        return self.bodies[name]

    def set_pd_gains(self, p, d):
        self.p_gain, self.d_gain = np.array(p, dtype=float), np.array(d, dtype=float)

    def set_pd_target(self, p, v):
        self.pos_target, self.vel_target = np.array(p, dtype=float), np.array(v, dtype=float)

    def set_generalized_force(self, tau):
        self.feedforward = np.array(tau, dtype=float)

    def get_generalized_force(self):
        return self.tau.copy()

    def set_state(self, gc, gv):
        self.gc, self.gv = np.array(gc, dtype=float), np.array(gv, dtype=float)

    def get_state(self):
        return self.gc.copy(), self.gv.copy()

    def get_contacts(self):
        return list(self.contacts)

    def advance(self, dt):
        tau = self.feedforward.copy()
        tau[6:] += self.p_gain[6:] * (self.pos_target[7:] - self.gc[7:]) - self.d_gain[6:] * self.gv[6:]
        self.tau = tau
        self.gc[7:] = self.pos_target[7:]
        self.gv[:6] = self.base_velocity_world
        self.gc[:3] += dt * self.base_velocity_world[:3]


class FakeWorld(World):
    def __init__(self, events=None, **robot_kwargs):
        self.robot_kwargs = robot_kwargs
        self.robot = None
        self.dt = 0.0
        self.ground = False
        self.resource = None
        self.integrations = 0
        self.events = events if events is not None else []

    def add_articulated_system(self, resource):
        self.resource = resource
        self.robot = FakeRobot(**self.robot_kwargs)
        return self.robot

    def add_ground(self):
        self.ground = True

    def set_time_step(self, dt):
        self.dt = dt

    def get_time_step(self):
        return self.dt

    def integrate(self):
        self.integrations += 1
        self.events.append("integrate")
        self.robot.advance(self.dt)

    @property
    def physics(self):
        return None


class FakeVisualizer:
    """Records every call in a shared event list."""

    def __init__(self, events):
        self.events = events
        self.focused = None
        self.hibernating = False
        self.videos = []
        self.killed = False

    def launch(self):
        self.events.append("launch")

    def focus_on(self, body_id):
        self.focused = body_id

    @contextlib.contextmanager
    def lock(self):
        self.events.append("lock")
        yield
        self.events.append("unlock")

    def sync(self):
        self.events.append("sync")

    def hibernate(self):
        self.hibernating = True

    def wakeup(self):
        self.hibernating = False

    def start_recording_video(self, name):
        self.videos.append(name)

    def stop_recording_video(self):
        self.events.append("stop_recording")

    def kill(self):
        self.killed = True


@pytest.fixture
def fake_world():
    return FakeWorld()


@pytest.fixture
def make_fake_env():
    """Factory: make_fake_env(**kwargs) -> (env, world)."""
    def _make(*, visualizable=False, visualizer=None, world=None, **kwargs):
        world = world if world is not None else FakeWorld()
        env = WalkerEnv("fake_robot.xml", visualizable, world=world, visualizer=visualizer, **kwargs)
        return env, world
    return _make


@pytest.fixture
def fake_physics():
    """Stand-in for the renderable physics handle used by the visualization bridge."""
    return SimpleNamespace(
        model=SimpleNamespace(ptr="model_ptr"),
        data=SimpleNamespace(ptr="data_ptr", time=0.0),
    )


@pytest.fixture
def anymal_xml():
    return str(ANYMAL_XML)
