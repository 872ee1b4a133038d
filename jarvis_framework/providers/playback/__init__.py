"""
Audio playback backends.
"""

from .ffplay_player import FfplayAudioPlayer, FfplayPlaybackHandle

__all__ = ['FfplayAudioPlayer', 'FfplayPlaybackHandle']
