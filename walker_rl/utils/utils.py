from pathlib import Path
from typing import Any, Dict, Optional
import numpy as np
import yaml

def load_cfg(yaml_path: Path) -> Dict[str, Any]:
    with open(yaml_path, "r") as f:
        return yaml.safe_load(f) or {}

def merge_cfg(base: Dict[str, Any], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Recursive dict merge; values in `override` win, nested dicts are merged key by key."""
    out = dict(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = merge_cfg(out[k], v)
        else:
            out[k] = v
    return out

# ----------------------
# Seeding
# ----------------------
def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Generator owned by a single caller. Never touches the global NumPy state,
    so several environments can be stepped side by side without sharing one stream.
    """
    return np.random.default_rng(seed)

def as_vector(x, size: int, name: str) -> np.ndarray:
    """Copy `x` to a flat float64 vector and check its length."""
    v = np.asarray(x, dtype=np.float64).reshape(-1).copy()
    if v.size != size:
        raise ValueError(f"{name} expects {size} entries, got {v.size}")
    return v
