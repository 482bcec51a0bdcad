# walker_rl/envs/loader.py
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional

from walker_rl.envs.walker_config import ENV_CFG, REWARD_CFG
from walker_rl.envs.walker_env import WalkerEnv
from walker_rl.utils.log_msgs import info_msg
from walker_rl.utils.utils import load_cfg, merge_cfg

_ASSETS_DIR = Path(__file__).resolve().parent / ".." / "assets"
DEFAULT_CFG = Path(__file__).resolve().parent / "cfg.yaml"

# ---- Registry of packaged robots (string -> MJCF path) ----
_ROBOTS: Dict[str, Path] = {
    "anymal_lite": _ASSETS_DIR / "anymal_lite.xml",
}

_TOP_LEVEL_KEYS = ("resource", "visualize", "seed", "environment", "reward", "gym")
_GYM_KEYS = ("max_episode_steps",)


def available_robots():
    return sorted(_ROBOTS)


def resolve_resource(resource: str | Path) -> Path:
    """Registered robot name or path to a robot description file."""
    key = str(resource)
    if key in _ROBOTS:
        return _ROBOTS[key].resolve()
    path = Path(resource).expanduser()
    if path.is_file():
        return path.resolve()
    raise ValueError(f"Unknown robot '{resource}'. Available: {available_robots()} "
                     f"(or pass a path to an MJCF file).")


def route_overrides(overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Nest flat keyword overrides under the config section that owns them:
    ENV_CFG keys -> environment, REWARD_CFG keys -> reward, max_episode_steps -> gym.
    None values are dropped; unknown keys raise ValueError.
    """
    routed: Dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key in _TOP_LEVEL_KEYS:
            section = {key: value}
        elif key in ENV_CFG:
            section = {"environment": {key: value}}
        elif key in REWARD_CFG:
            section = {"reward": {key: value}}
        elif key in _GYM_KEYS:
            section = {"gym": {key: value}}
        else:
            raise ValueError(f"Unknown config key '{key}'.")
        routed = merge_cfg(routed, section)
    return routed


def build_cfg(cfg_path: Optional[str | Path] = None, **overrides: Any) -> Dict[str, Any]:
    """
    Config as a nested dict:
      resource, visualize, seed, environment (ENV_CFG overrides), reward (REWARD_CFG overrides), gym.
    The YAML file (packaged default if None) is loaded first, keyword overrides win.
    """
    cfg = load_cfg(Path(cfg_path) if cfg_path is not None else DEFAULT_CFG)
    return merge_cfg(cfg, route_overrides(overrides))


def make_env(cfg_path: Optional[str | Path] = None, *, world=None, visualizer=None, **overrides: Any) -> WalkerEnv:
    cfg = build_cfg(cfg_path, **overrides)
    resource = resolve_resource(cfg.get("resource", "anymal_lite"))
    info_msg(f"Building walker env from {resource.name}")
    return WalkerEnv(
        str(resource),
        bool(cfg.get("visualize", False)),
        world=world,
        visualizer=visualizer,
        cfg=cfg.get("environment"),
        reward_cfg=cfg.get("reward"),
        seed=cfg.get("seed"),
    )
