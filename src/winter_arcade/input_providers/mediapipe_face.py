from __future__ import annotations

import os
import threading
import time
from queue import Queue
from typing import Any, Dict, Optional, Tuple

import cv2

from ..events import Action, InputEvent, press
from .gestures import DEFAULT_THRESHOLDS, NOTE, FaceGestures


class FaceProvider:
    """
    表情を押しっぱなし入力として扱う。
    - 口を開ける -> COMMIT（開いている間が溜め、閉じると解放）
    - 笑顔       -> BRUSH
    - まばたき   -> PITCH_UP
    - Escキー    -> QUIT
    """

    def __init__(
        self,
        camera_index: int = 0,
        blink_threshold: float = DEFAULT_THRESHOLDS["blink"],
        mouth_threshold: float = DEFAULT_THRESHOLDS["mouth"],
        smile_threshold: float = DEFAULT_THRESHOLDS["smile"],
        hysteresis: float = 0.05,  # ON/OFFの二段閾値（0で無効）
        frame_width: int = 80,
        frame_height: int = 60,
        frame_skip: int = 0,  # 任意のフレームおきに処理する (0なら全フレーム)
        fps: int | None = 15,
        buffersize: int = 1,
        use_mjpeg: bool = True,
        delegate: str | None = None,  # 'CPU' or 'GPU' を指定可能（Noneでデフォルト）
        model_path: str | None = None,
        gesture_actions: Optional[Dict[str, Action]] = None,
    ) -> None:

        self._gestures = FaceGestures(
            {"mouth": mouth_threshold, "smile": smile_threshold, "blink": blink_threshold},
            hysteresis=hysteresis,
            gesture_actions=gesture_actions,
        )

        # カメラ初期化（軽量化のためFPS/バッファ等を設定）
        self._cap = cv2.VideoCapture(camera_index)
        if not self._cap.isOpened():
            raise RuntimeError(f"Cannot open camera index {camera_index}.")
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, frame_width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, frame_height)
        if fps is not None:
            self._cap.set(cv2.CAP_PROP_FPS, int(fps))
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, int(buffersize))
        if use_mjpeg:
            self._cap.set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*"MJPG"))

        self._frame_skip = max(0, int(frame_skip))
        self._skip_stride = self._frame_skip + 1
        self._time_base = time.monotonic()
        self._result_lock = threading.Lock()
        # 最新のblendshape辞書とタイムスタンプのみ保持
        self._latest_result: Optional[Tuple[Optional[Dict[str, float]], int]] = None
        self._last_processed_ts: int = -1
        self._running = False
        self._worker: Optional[threading.Thread] = None

        # MediaPipe関連は遅延初期化
        self._detector = None  # type: ignore[assignment]
        self._mp_image_cls = None  # type: ignore[assignment]
        self._mp_format = None  # type: ignore[assignment]

        if model_path is None:
            base_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
            model_path = os.path.join(base_dir, "assets", "models", "face_landmarker.task")
        self._model_path = model_path
        self._delegate = delegate

    def start(self, _out_queue: Queue | None = None) -> None:
        if self._running:
            return

        # 遅延インポートとFaceLandmarker初期化
        if self._detector is None:
            if not os.path.exists(self._model_path):
                raise RuntimeError(f"Face landmarker model not found: {self._model_path}")
            try:
                import mediapipe as mp  # type: ignore
                from mediapipe.tasks import python  # type: ignore
                from mediapipe.tasks.python import vision  # type: ignore
            except ImportError as e:
                raise RuntimeError(f"Failed to import MediaPipe: {e}") from e

            base_opts_kwargs: dict[str, Any] = {"model_asset_path": self._model_path}
            if self._delegate:
                # 'CPU' or 'GPU' を想定（未知の値は無視）
                if self._delegate.upper() == "CPU":
                    base_opts_kwargs["delegate"] = python.BaseOptions.Delegate.CPU
                elif self._delegate.upper() == "GPU":
                    base_opts_kwargs["delegate"] = python.BaseOptions.Delegate.GPU

            options = vision.FaceLandmarkerOptions(
                base_options=python.BaseOptions(**base_opts_kwargs),
                output_face_blendshapes=True,
                num_faces=1,
                running_mode=vision.RunningMode.LIVE_STREAM,
                result_callback=self._on_async_result,
            )
            self._detector = vision.FaceLandmarker.create_from_options(options)

            self._mp_image_cls = mp.Image
            self._mp_format = mp.ImageFormat.SRGB

        self._running = True
        self._worker = threading.Thread(target=self._run_worker, name="FaceProviderWorker", daemon=True)
        self._worker.start()

    def stop(self) -> None:
        self._running = False
        worker = self._worker
        if worker and worker.is_alive():
            worker.join(timeout=1.0)
        self._worker = None

        # Detector/Cameraの明示的クローズ
        if self._detector is not None:
            self._detector.close()
            self._detector = None
        if self._cap is not None:
            self._cap.release()

    def _run_worker(self) -> None:
        skip_counter = 0
        while self._running:
            if self._frame_skip > 0:
                grabbed = self._cap.grab()
                if not grabbed:
                    time.sleep(0.01)
                    continue
                skip_counter = (skip_counter + 1) % self._skip_stride
                if skip_counter != 0:
                    continue
                ok, frame_bgr = self._cap.retrieve()
            else:
                ok, frame_bgr = self._cap.read()
            if not ok or frame_bgr is None:
                time.sleep(0.01)
                continue

            rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
            mp_image = self._mp_image_cls(image_format=self._mp_format, data=rgb)
            timestamp_ms = int((time.monotonic() - self._time_base) * 1000)

            try:
                self._detector.detect_async(mp_image, timestamp_ms)
            except RuntimeError:
                time.sleep(0.01)
                continue

    def _consume_latest_result(self) -> Optional[Tuple[Optional[Dict[str, float]], int]]:
        with self._result_lock:
            latest = self._latest_result
            if not latest:
                return None
            result, ts_ms = latest
            if ts_ms == self._last_processed_ts:
                return None
            self._last_processed_ts = ts_ms
        return result, ts_ms

    def poll(self, px, out_queue: Queue) -> None:  # type: ignore[override]
        # Escキー
        if px is not None and px.btnp(px.KEY_ESCAPE):
            out_queue.put(press(Action.QUIT, note=NOTE))

        if not self._running:
            self.start()

        payload = self._consume_latest_result()
        if payload is None:
            return
        shapes, _ = payload
        for event in self.gesture_events(shapes):
            out_queue.put(event)

    def gesture_events(self, shapes: Optional[Dict[str, float]]) -> list[InputEvent]:
        """blendshape 辞書から押下 / 解放イベントを作る"""
        return self._gestures.events(shapes)

    def _on_async_result(self, result: Any, _output_image: Any, timestamp_ms: int) -> None:
        # コールバック側でblendshape配列を辞書化して前処理
        shapes: Optional[Dict[str, float]] = None
        blends = getattr(result, "face_blendshapes", None)
        if blends and isinstance(blends, list) and len(blends) > 0:
            items = blends[0]
            if isinstance(items, list):
                tmp: Dict[str, float] = {}
                for c in items:
                    cname = getattr(c, "category_name", None)
                    score = getattr(c, "score", None)
                    if cname and (score is not None):
                        tmp[str(cname).lower()] = float(score)
                shapes = tmp
        with self._result_lock:
            self._latest_result = (shapes, timestamp_ms)

