"""
ffplay-backed audio player.

Audio bytes are piped into ``ffplay -nodisp -autoexit`` so any format ffmpeg
can decode plays without temp files; release() kills the process at once.
"""

import asyncio
from typing import Dict, Any, List, Optional

try:
    from ...interfaces.playback import AudioPlayer, PlaybackHandle
    from ...models.data_models import AudioOutput, AudioFormat
    from ...utils.error_handling import PlaybackError
    from ...utils.logging_config import get_logger
except ImportError:
    from jarvis_framework.interfaces.playback import AudioPlayer, PlaybackHandle
    from jarvis_framework.models.data_models import AudioOutput, AudioFormat
    from jarvis_framework.utils.error_handling import PlaybackError
    from jarvis_framework.utils.logging_config import get_logger

logger = get_logger("playback")


class FfplayPlaybackHandle(PlaybackHandle):
    """Playback of one buffer through an ffplay subprocess."""

    def __init__(self, process: asyncio.subprocess.Process, audio_data: bytes):
        super().__init__()
        self._process = process
        self._audio_data = audio_data

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid

    def _stop_output(self) -> None:
        if self._process.returncode is not None:
            return
        try:
            self._process.kill()
        except ProcessLookupError:
            pass

    async def _play_to_end(self) -> None:
        stdin = self._process.stdin
        if stdin is not None:
            try:
                stdin.write(self._audio_data)
                await stdin.drain()
                stdin.close()
                await stdin.wait_closed()
            except (BrokenPipeError, ConnectionResetError) as e:
                await self._process.wait()
                raise PlaybackError(f"ffplay closed its input: {e}") from e

        returncode = await self._process.wait()
        if returncode != 0:
            raise PlaybackError(f"ffplay exited with code {returncode}")


class FfplayAudioPlayer(AudioPlayer):
    """Launches one ffplay process per reply."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.binary = config.get('binary', 'ffplay')
        self.volume = config.get('volume')

    def _format_args(self, audio: AudioOutput) -> List[str]:
        # Most formats are auto-detected, raw PCM needs hints
        if audio.format == AudioFormat.PCM16:
            return ["-f", "s16le", "-ar", str(audio.sample_rate), "-ac", "1"]
        return []

    def build_command(self, audio: AudioOutput) -> List[str]:
        command = [
            self.binary,
            "-nodisp",
            "-autoexit",
            "-loglevel", "quiet",
        ]
        if self.volume is not None:
            command += ["-volume", str(int(self.volume))]
        command += [*self._format_args(audio), "-i", "pipe:0"]
        return command

    async def launch(self, audio: AudioOutput) -> PlaybackHandle:
        try:
            process = await asyncio.create_subprocess_exec(
                *self.build_command(audio),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL
            )
        except FileNotFoundError as e:
            raise PlaybackError(f"{self.binary} not found; install ffmpeg for audio playback") from e
        except OSError as e:
            raise PlaybackError(f"Could not start {self.binary}: {e}") from e

        logger.debug(f"{self.binary} started (pid {process.pid})")
        return FfplayPlaybackHandle(process, audio.audio_data)
