# src/todomai/tts/engine.py

"""
Spoken task notifications.

The app only ever says a handful of short, fixed phrases ("Task completed"),
so waveforms are synthesized once and replayed from a cache. XTTS runs at
startup for the configured completion phrase; anything else is synthesized
on first use and then cached too.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

XTTS_MODEL = "tts_models/multilingual/multi-dataset/xtts_v2"


def _normalize(text: str) -> str:
    return " ".join(str(text).split())


class PhraseCache:
    """Waveforms keyed by normalized text; each phrase is synthesized at most once."""

    def __init__(self, synthesize: Callable[[str], Any]) -> None:
        self._synthesize = synthesize
        self._audio: dict[str, Any] = {}
        self._lock = threading.Lock()

    def __contains__(self, text: str) -> bool:
        return _normalize(text) in self._audio

    def get(self, text: str) -> Any | None:
        key = _normalize(text)
        if not key:
            return None
        with self._lock:
            if key in self._audio:
                return self._audio[key]
            try:
                audio = self._synthesize(key)
            except Exception as e:
                # Not cached: a later call retries.
                logger.error("TTS synthesis failed for %r: %r", key, e)
                return None
            self._audio[key] = audio
            logger.debug("Cached waveform for %r", key)
            return audio


def _speaker_kwargs(settings: Any) -> dict[str, str]:
    """speaker_wav (voice cloning) when it points to a file, else the named XTTS speaker."""
    wav_path = (getattr(settings, "speaker_wav", "") or "").strip()
    if wav_path:
        if Path(wav_path).is_file():
            return {"speaker_wav": wav_path}
        logger.warning("speaker_wav does not exist: %s. Falling back to speaker name.", wav_path)
    return {"speaker": getattr(settings, "xtts_speaker_name", "Ana Florence")}


class TTSEngine:
    """
    Best-effort player for cached notification phrases.

    - torch/TTS/sounddevice are imported only when enabled; if they are
      missing or the model fails to load, the engine disables itself.
    - The completion phrase is synthesized during construction so the first
      completed task plays without model latency.
    - Playback runs in a worker thread, never on the caller's thread.
    """

    def __init__(self, enabled: bool, settings: Any = None):
        self.enabled = bool(enabled)
        self.phrase = getattr(settings, "completion_phrase", "Task completed")

        self._queue: "queue.Queue[str | None] | None" = None
        self._worker: threading.Thread | None = None
        self._cache: PhraseCache | None = None
        self._play: Callable[[Any], None] | None = None
        self._stop_requested = False

        if not self.enabled:
            logger.info("TTS disabled.")
            return

        logger.info("TTS enabling: importing torch/TTS/sounddevice... this may take a while.")

        try:
            import sounddevice as sd  # type: ignore
            import torch  # type: ignore
            from TTS.api import TTS  # type: ignore
        except Exception as e:
            self.enabled = False
            logger.warning("TTS dependencies missing; install the 'tts' extra. Error: %r", e)
            return

        try:
            device = "cuda" if torch.cuda.is_available() else "cpu"
            logger.info("Loading XTTS on %s. First run may download large model files.", device)
            model = TTS(XTTS_MODEL).to(device)
        except Exception as e:
            self.enabled = False
            logger.error("Failed to initialize XTTS model: %r", e)
            return

        sample_rate = getattr(getattr(model, "synthesizer", None), "output_sample_rate", None) or 24000
        language = getattr(settings, "xtts_language", "en")
        speaker = _speaker_kwargs(settings)

        def synthesize(text: str) -> Any:
            return model.tts(text=text, language=language, **speaker)

        def play(audio: Any) -> None:
            sd.play(audio, int(sample_rate))
            sd.wait()

        self._start(PhraseCache(synthesize), play)

        if self._cache is not None and self._cache.get(self.phrase) is None:
            logger.warning("Completion phrase could not be pre-synthesized; will retry on first use.")

        logger.info("TTS ready (sample_rate=%s, cached=%r).", sample_rate, self.phrase)

    def _start(self, cache: PhraseCache, play: Callable[[Any], None]) -> None:
        self._cache = cache
        self._play = play
        self._queue = queue.Queue()
        self._worker = threading.Thread(target=self._run, name="tts-player", daemon=True)
        self._worker.start()

    def _run(self) -> None:
        q = self._queue
        if q is None or self._cache is None or self._play is None:
            return
        logger.debug("TTS worker thread started.")
        while True:
            item = q.get()
            try:
                if item is None:
                    return
                audio = self._cache.get(item)
                if audio is None:
                    continue
                try:
                    self._play(audio)
                except Exception as e:
                    logger.error("TTS playback failed: %r", e)
            finally:
                q.task_done()

    @classmethod
    def with_backend(
        cls,
        synthesize: Callable[[str], Any],
        play: Callable[[Any], None],
        *,
        phrase: str = "Task completed",
    ) -> TTSEngine:
        """Engine over an arbitrary synthesizer/player pair (no torch/TTS import)."""
        cache = PhraseCache(synthesize)
        cache.get(phrase)

        engine = cls(enabled=False)
        engine.enabled = True
        engine.phrase = phrase
        engine._start(cache, play)
        return engine

    def speak_sentence(self, text: str) -> None:
        """Queue a phrase for playback (no-op if disabled)."""
        if not self.enabled or self._queue is None:
            return
        self._queue.put(text)

    def wait_all(self) -> None:
        """Block until all queued phrases are played (no-op if disabled)."""
        if not self.enabled or self._queue is None:
            return
        self._queue.join()

    def shutdown(self) -> None:
        """Stop the worker after the queue drains (no-op if disabled)."""
        if not self.enabled or self._queue is None or self._stop_requested:
            return
        self._stop_requested = True

        logger.info("Stopping TTS worker...")
        self._queue.put(None)
        self._queue.join()

        if self._worker is not None:
            self._worker.join(timeout=2.0)

        logger.info("TTS stopped.")
