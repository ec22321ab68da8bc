"""
Participant registry: creates and resolves QR-code participants.
"""
import logging
import secrets
import string
from typing import List, Optional

from cough_survey.core.config import MIN_TOKEN_LENGTH, settings
from cough_survey.core.datetime_utils import utc_now
from cough_survey.core.entities import Participant
from cough_survey.core.exceptions import (
    InvalidBatchSize,
    ParticipantNotFound,
    TokenCollision,
)
from cough_survey.storage.base import Storage

logger = logging.getLogger(__name__)

# 62 URL-safe symbols; 8 characters give ~2.2 * 10^14 tokens
TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_token(length: int) -> str:
    """Generate a cryptographically random URL-safe token."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


class ParticipantRegistry:
    def __init__(
        self,
        storage: Storage,
        token_length: Optional[int] = None,
        max_attempts: Optional[int] = None,
        token_factory=generate_token,
    ):
        self.storage = storage
        self.token_length = (
            settings.PARTICIPANT_TOKEN_LENGTH if token_length is None else token_length
        )
        self.max_attempts = (
            settings.PARTICIPANT_TOKEN_MAX_ATTEMPTS if max_attempts is None else max_attempts
        )
        if self.token_length < MIN_TOKEN_LENGTH:
            raise ValueError(f"token_length must be at least {MIN_TOKEN_LENGTH}")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.token_factory = token_factory

    def create(self, label: Optional[str] = None) -> Participant:
        with self.storage.transaction():
            return self._create_one(label)

    def create_batch(self, count: int, label: Optional[str] = None) -> List[Participant]:
        """
        Create ``count`` participants atomically.

        Raises:
            InvalidBatchSize: If count is outside [1, PARTICIPANT_BATCH_MAX]
        """
        maximum = settings.PARTICIPANT_BATCH_MAX
        if not 1 <= count <= maximum:
            raise InvalidBatchSize(count, maximum)

        with self.storage.transaction():
            participants = [self._create_one(label) for _ in range(count)]
        logger.info(f"Created {count} participants (label={label!r})")
        return participants

    def _create_one(self, label: Optional[str]) -> Participant:
        # A taken token is never overwritten; draw a fresh one instead
        for attempt in range(1, self.max_attempts + 1):
            token = self.token_factory(self.token_length)
            if self.storage.participants.get_by_token(token) is None:
                return self.storage.participants.add(token, label, created_at=utc_now())
            logger.warning(
                f"Participant token collision on attempt {attempt}/{self.max_attempts}"
            )
        raise TokenCollision(self.max_attempts)

    def get_by_token(self, token: str) -> Participant:
        participant = self.storage.participants.get_by_token(token)
        if participant is None:
            raise ParticipantNotFound(token=token)
        return participant

    def get_by_id(self, participant_id: int) -> Participant:
        participant = self.storage.participants.get(participant_id)
        if participant is None:
            raise ParticipantNotFound(participant_id=participant_id)
        return participant

    def list(self) -> List[Participant]:
        return self.storage.participants.list()

    @staticmethod
    def evaluation_url(participant: Participant, base_url: Optional[str] = None) -> str:
        """URL encoded into the participant's QR code."""
        base = (base_url or settings.BASE_URL).rstrip("/")
        return f"{base}/evaluate/{participant.token}"
