# engine.py  (physics engine capability interface)
from __future__ import annotations
import enum
from typing import List, NamedTuple, Tuple

import numpy as np


class ControlMode(enum.Enum):
    FORCE_AND_TORQUE = "force_and_torque"
    PD_PLUS_FEEDFORWARD_TORQUE = "pd_plus_feedforward_torque"


class Contact(NamedTuple):
    """One contact reported for the robot. `local_body_index` is the robot body touching something."""
    local_body_index: int


class ArticulatedSystem:
    """
    Protocol for a floating-base articulated robot living inside a `World`.

    Generalized coordinates are [base pos (3), base quat w,x,y,z (4), joints],
    generalized velocities are [base lin vel (3), base ang vel (3), joints],
    base velocities expressed in the world frame.
    """
    @property
    def control_mode(self) -> ControlMode: raise NotImplementedError
    @control_mode.setter
    def control_mode(self, mode: ControlMode): raise NotImplementedError

    def generalized_coordinate_dim(self) -> int: raise NotImplementedError
    def degrees_of_freedom(self) -> int: raise NotImplementedError
    def body_index(self, name: str) -> int: raise NotImplementedError

    def set_pd_gains(self, p_gain: np.ndarray, d_gain: np.ndarray) -> None: raise NotImplementedError
    def set_pd_target(self, pos_target: np.ndarray, vel_target: np.ndarray) -> None: raise NotImplementedError
    def set_generalized_force(self, tau: np.ndarray) -> None: raise NotImplementedError
    def get_generalized_force(self) -> np.ndarray: raise NotImplementedError

    def set_state(self, gc: np.ndarray, gv: np.ndarray) -> None: raise NotImplementedError
    def get_state(self) -> Tuple[np.ndarray, np.ndarray]: raise NotImplementedError

    def get_contacts(self) -> List[Contact]: raise NotImplementedError


class World:
    """Protocol for the simulated world: owns the robot, the ground and time stepping."""
    def add_articulated_system(self, resource: str) -> ArticulatedSystem: raise NotImplementedError
    def add_ground(self) -> None: raise NotImplementedError
    def set_time_step(self, dt: float) -> None: raise NotImplementedError
    def get_time_step(self) -> float: raise NotImplementedError
    def integrate(self) -> None: raise NotImplementedError

    @property
    def physics(self):
        # engines without a renderable physics handle return None
        return None
