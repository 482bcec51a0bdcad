# visualization.py  (passive viewer + video recording for the walker)
from __future__ import annotations
import contextlib
import os
from typing import Callable, List, Optional

import cv2
import imageio
import mujoco
import mujoco.viewer
import numpy as np

from walker_rl.envs.walker_config import VIS_CFG
from walker_rl.utils.log_msgs import info_msg, success_msg, warn_msg


def annotate_with_time(frame: np.ndarray, sim_time: float) -> np.ndarray:
    fb = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)
    text = f"t = {sim_time:.2f} s"
    h, w, _ = fb.shape
    cv2.putText(fb, text, (10, h - 20), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2, cv2.LINE_AA)
    return cv2.cvtColor(fb, cv2.COLOR_BGR2RGB)


class VisualizationBridge:
    """
    Mirrors a MuJoCo world into the passive viewer (its own render thread).

    The environment wraps every substep in `lock()` and calls `sync()` once per
    control step, so the viewer only sees completed substeps. Hibernating stops
    syncing; physics is never touched from here. Recording renders offscreen
    frames with a tracking camera and writes them with imageio on stop.
    """

    def __init__(self, world, *, cfg: Optional[dict] = None,
                 launcher: Optional[Callable] = None,
                 renderer_factory: Optional[Callable] = None):
        self._world = world
        self._cfg = dict(VIS_CFG, **(cfg or {}))
        self._launcher = launcher or mujoco.viewer.launch_passive
        self._renderer_factory = renderer_factory or mujoco.Renderer
        self._handle = None
        self._hibernating = False
        self._track_body: Optional[int] = None

        # recording
        self._video_name: Optional[str] = None
        self._frames: List[np.ndarray] = []
        self._renderer = None
        self._camera = None

    @property
    def is_running(self) -> bool:
        return self._handle is not None and bool(self._handle.is_running())

    @property
    def hibernating(self) -> bool:
        return self._hibernating

    @property
    def recording(self) -> bool:
        return self._video_name is not None

    def launch(self) -> None:
        info_msg("Starting visualization thread...")
        physics = self._world.physics
        self._handle = self._launcher(physics.model.ptr, physics.data.ptr)

    def focus_on(self, body_id: int) -> None:
        self._track_body = int(body_id)
        if self._handle is None:
            return
        with self._handle.lock():
            self._aim_camera(self._handle.cam)

    def _aim_camera(self, cam) -> None:
        cam.type = mujoco.mjtCamera.mjCAMERA_TRACKING
        cam.trackbodyid = self._track_body
        cam.distance = float(self._cfg["camera_distance"])
        cam.elevation = -20.0

    @contextlib.contextmanager
    def lock(self):
        if self._handle is None:
            yield
            return
        with self._handle.lock():
            yield

    def sync(self) -> None:
        if self._handle is not None and not self._hibernating and self._handle.is_running():
            self._handle.sync()
        if self.recording:
            self._grab_frame()

    # --- hibernate / wake (render loop only) ---
    def hibernate(self) -> None:
        self._hibernating = True

    def wakeup(self) -> None:
        self._hibernating = False

    # --- recording ---
    def start_recording_video(self, video_name: str) -> None:
        if self.recording:
            warn_msg(f"Already recording to {self._video_name}; restarting with {video_name}.")
        physics = self._world.physics
        h, w = self._cfg["record_size"]
        if self._renderer is None:
            self._renderer = self._renderer_factory(physics.model.ptr, height=int(h), width=int(w))
            self._camera = mujoco.MjvCamera()
            if self._track_body is not None:
                self._aim_camera(self._camera)
        self._video_name = str(video_name)
        self._frames = []
        info_msg(f"Recording video to {self._video_name}")

    def _grab_frame(self) -> None:
        physics = self._world.physics
        self._renderer.update_scene(physics.data.ptr, camera=self._camera)
        frame = np.asarray(self._renderer.render())
        self._frames.append(annotate_with_time(frame, float(physics.data.time)))

    def stop_recording_video(self) -> str:
        if not self.recording:
            raise RuntimeError("stop_recording_video() called without an active recording.")
        out_path, frames = self._video_name, self._frames
        self._video_name, self._frames = None, []
        if not frames:
            warn_msg(f"No frames captured for {out_path}; nothing written.")
            return out_path
        out_dir = os.path.dirname(out_path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        fps = int(self._cfg["record_fps"])
        if out_path.lower().endswith(".gif"):
            imageio.mimsave(out_path, frames, duration=1000.0 / fps, loop=0)
        else:
            imageio.mimsave(out_path, frames, fps=fps)
        success_msg(f"Saved video: {out_path}  frames={len(frames)}")
        return out_path

    def kill(self) -> None:
        if self.recording:
            self.stop_recording_video()
        if self._renderer is not None:
            self._renderer.close()
            self._renderer = None
        if self._handle is not None:
            self._handle.close()
            self._handle = None
