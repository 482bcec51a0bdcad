# tests/test_reward.py
from __future__ import annotations

import numpy as np
import pytest

from walker_rl.envs.engine import Contact
from walker_rl.envs.reward import FootContactChecker, RewardCoeffs, compute_reward


@pytest.mark.parametrize("vx", [-1.0, 0.0, 1.25, 4.0, 7.5])
def test_reward_formula(vx):
    force = np.linspace(-30.0, 30.0, 18)
    expected = -4e-5 * float(np.dot(force, force)) + 0.3 * min(4.0, vx)
    assert compute_reward(force, vx) == expected


def test_forward_velocity_is_capped():
    assert compute_reward(np.zeros(18), 10.0) == compute_reward(np.zeros(18), 4.0) == 0.3 * 4.0


def test_coeffs_from_cfg():
    c = RewardCoeffs.from_cfg({"force_coeff": 1e-3, "terminal_reward_coeff": -5.0})
    assert c.force == 1e-3 and c.terminal == -5.0
    assert c.velocity == 0.3 and c.velocity_cap == 4.0


FEET = (4, 7, 10, 13)


def test_foot_contacts_are_not_terminal():
    checker = FootContactChecker(FEET, terminal_reward_coeff=-10.0)
    contacts = [Contact(i) for i in FEET]
    assert checker.is_terminal(contacts) == (False, 0.0)
    assert checker.is_terminal([]) == (False, 0.0)


@pytest.mark.parametrize("body", [1, 3, 12])
def test_any_non_foot_contact_is_terminal(body):
    checker = FootContactChecker(FEET, terminal_reward_coeff=-10.0)
    contacts = [Contact(4), Contact(body), Contact(7)]
    assert checker.is_terminal(contacts) == (True, -10.0)
