# blaster/feed.py
"""Capture thread and the latest-signal cell it writes into.

The capture worker is the only writer of conditioner state. The game loop only
ever reads the most recent AimSignal; older ones are overwritten, not queued.
"""
import threading
import time

import cv2
import numpy as np

from blaster.conditioner import AimSignal, landmark_xyz


class CaptureError(RuntimeError):
    """Camera or landmark inference failed; gameplay cannot continue."""


class SignalFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._signal = AimSignal()
        self._seq = 0
        self._error = None

    def publish(self, signal):
        with self._lock:
            self._signal = signal
            self._seq += 1

    def latest(self):
        with self._lock:
            return self._signal

    @property
    def seq(self):
        """Number of signals published so far."""
        with self._lock:
            return self._seq

    def fail(self, reason):
        with self._lock:
            self._error = str(reason)

    @property
    def error(self):
        with self._lock:
            return self._error

    def clear_error(self):
        with self._lock:
            self._error = None


def open_face_mesh():
    import mediapipe as mp

    if not hasattr(mp, "solutions"):
        raise CaptureError(f"mediapipe {getattr(mp, '__version__', '?')} has no FaceMesh solution")
    return mp.solutions.face_mesh.FaceMesh(
        max_num_faces=1,
        refine_landmarks=False,
        min_detection_confidence=0.5,
        min_tracking_confidence=0.5,
    )


def first_face(results):
    """Landmark list of the first detected face, or None."""
    faces = getattr(results, "multi_face_landmarks", None)
    if not faces:
        return None
    return faces[0].landmark


def landmark_points(landmarks):
    """(N, 2) array of normalized x/y for drawing; empty without a face."""
    if landmarks is None or len(landmarks) == 0:
        return np.empty((0, 2))
    return np.array([landmark_xyz(lm)[:2] for lm in landmarks])


class CaptureWorker(threading.Thread):
    """Reads camera frames, runs FaceMesh + conditioner, publishes to the feed.

    Reset / recalibrate / sensitivity requests from other threads are queued as
    flags and applied here just before the next frame is conditioned.
    """
    def __init__(self, conditioner, feed, camera=0, flip=False,
                 capture_factory=None, mesh_factory=None, idle_sleep=0.01):
        super().__init__(name="capture", daemon=True)
        self.conditioner = conditioner
        self.feed = feed
        self.camera = camera
        self.flip = flip
        self.capture_factory = capture_factory or cv2.VideoCapture
        self.mesh_factory = mesh_factory or open_face_mesh
        self.idle_sleep = idle_sleep

        self._stop_ev = threading.Event()
        self._run_ev = threading.Event()
        self._run_ev.set()
        # held while a frame touches the conditioner or the feed
        self._cycle_lock = threading.Lock()
        self._req_lock = threading.Lock()
        self._want_reset = False
        self._want_recalib = False
        self._want_sensitivity = None

        self._preview_lock = threading.Lock()
        self._preview = None
        self.frames = 0

    # --- control (any thread) ---
    def pause(self):
        """Stop publishing. Once this returns no further signal reaches the feed."""
        with self._cycle_lock:
            self._run_ev.clear()

    def resume(self):
        self._run_ev.set()

    @property
    def paused(self):
        return not self._run_ev.is_set()

    def stop(self, timeout=2.0):
        self._stop_ev.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)

    def request_reset(self):
        with self._req_lock:
            self._want_reset = True

    def request_recalibrate(self):
        with self._req_lock:
            self._want_recalib = True

    def request_sensitivity(self, value):
        with self._req_lock:
            self._want_sensitivity = value

    def preview(self):
        """(frame_bgr, signal, reference_point, landmark_xy) of the last processed frame."""
        with self._preview_lock:
            return self._preview

    # --- worker side ---
    def _apply_requests(self):
        with self._req_lock:
            reset, recalib, sens = self._want_reset, self._want_recalib, self._want_sensitivity
            self._want_reset = self._want_recalib = False
            self._want_sensitivity = None
        if reset:
            self.conditioner.reset()
        elif recalib:
            self.conditioner.recalibrate()
        if sens is not None:
            self.conditioner.aim.sensitivity = sens

    def process_frame(self, frame, mesh):
        """Run one frame through FaceMesh and the conditioner.

        Returns the published signal, or None when the worker was paused while
        the frame was in flight.
        """
        if self.flip:
            frame = cv2.flip(frame, 1)
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        face = first_face(mesh.process(rgb))
        with self._cycle_lock:
            if not self._run_ev.is_set():
                return None
            self._apply_requests()
            signal = self.conditioner.condition(face)
            self.feed.publish(signal)
            ref = self.conditioner.reference
        with self._preview_lock:
            self._preview = (frame, signal, ref, landmark_points(face))
        self.frames += 1
        return signal

    def run(self):
        cap = None
        mesh = None
        try:
            cap = self.capture_factory(self.camera)
            if not cap.isOpened():
                raise CaptureError(f"camera {self.camera} open failed")
            mesh = self.mesh_factory()
            print(f"[capture] camera {self.camera} opened")
            while not self._stop_ev.is_set():
                if not self._run_ev.is_set():
                    self._run_ev.wait(0.1)
                    continue
                ok, frame = cap.read()
                if not ok:
                    raise CaptureError("camera read failed")
                self.process_frame(frame, mesh)
                if self.idle_sleep:
                    time.sleep(self.idle_sleep)
        except Exception as exc:
            print(f"[capture] stopped: {exc}")
            self.feed.fail(exc)
        finally:
            if mesh is not None and hasattr(mesh, "close"):
                mesh.close()
            if cap is not None:
                cap.release()
            print(f"[capture] released after {self.frames} frames")
