from __future__ import annotations

from typing import Protocol

from .model import ChallengeToken


class ChallengeTokenRepository(Protocol):
    """Issued tokens. Consumption happens together with the event insert
    (``CheckEventRepository.append_with_token``)."""

    def register(self, token: ChallengeToken) -> None:
        """Record a freshly issued, unconsumed token."""

        raise NotImplementedError

    def is_consumed(self, token: str) -> bool:
        raise NotImplementedError
