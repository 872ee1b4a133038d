"""
Speech capture providers.
"""

from .openai_whisper import OpenAIWhisperCaptureProvider

__all__ = ['OpenAIWhisperCaptureProvider']
