"""
Abstract interface for response generators.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from ..models.data_models import Message, ResponseResult


class ResponseInterface(ABC):
    """Abstract base class for all response providers."""

    @abstractmethod
    async def initialize(self) -> bool:
        """
        Initialize the response provider.

        Returns:
            bool: True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    async def generate(self,
                       message: str,
                       history: Sequence[Message] = (),
                       endpoint_override: Optional[str] = None) -> ResponseResult:
        """
        Produce the assistant reply for a user message.

        Args:
            message: The new user text
            history: Bounded window of prior messages, oldest first
            endpoint_override: Optional URL replacing the configured endpoint

        Returns:
            ResponseResult: Reply text plus delivery metadata

        Raises:
            ResponseGenerationError: If no usable reply could be produced
        """
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Clean up resources used by the response provider."""
        pass
