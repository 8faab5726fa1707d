from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from evolver.models.music_params import MusicParameters

log = logging.getLogger(__name__)


@runtime_checkable
class AudioPlayer(Protocol):
    """Interface for playback backends.

    Implement this protocol with your own audio engine. ``play`` schedules the
    parameters' patterns on a loop, ``stop`` silences everything and must be safe
    to call when nothing is playing, and ``current_step`` reports the position
    in the longest pattern.
    """

    async def play(self, params: MusicParameters) -> None: ...

    def stop(self) -> None: ...

    def current_step(self) -> int: ...


class StubAudioPlayer:
    """Placeholder that logs what it would play instead of producing sound."""

    def __init__(self) -> None:
        self.now_playing: MusicParameters | None = None
        self._step = 0

    async def play(self, params: MusicParameters) -> None:
        self.stop()
        self.now_playing = params
        log.info(
            "[StubAudioPlayer] Would play %d pattern(s) at %.1f BPM in %s",
            len(params.patterns),
            params.tempo,
            params.key,
        )

    def stop(self) -> None:
        if self.now_playing is not None:
            log.info("[StubAudioPlayer] Stopped")
        self.now_playing = None
        self._step = 0

    def current_step(self) -> int:
        return self._step

    @property
    def is_playing(self) -> bool:
        return self.now_playing is not None
