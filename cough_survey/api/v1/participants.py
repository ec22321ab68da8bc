"""
Participant endpoints.

Participants are created in batches by an administrator and reach the
survey through a QR code that encodes their evaluation URL.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from cough_survey.api.v1.deps import get_participant_registry, verify_admin_token
from cough_survey.core.participants import ParticipantRegistry
from cough_survey.schemas.participants import (
    ParticipantBatchRequest,
    ParticipantBatchResponse,
    ParticipantLink,
    ParticipantResponse,
)

router = APIRouter()


@router.post(
    "/batch",
    response_model=ParticipantBatchResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_admin_token)],
)
def create_participant_batch(
    payload: ParticipantBatchRequest,
    registry: ParticipantRegistry = Depends(get_participant_registry),
):
    """
    Create a batch of participants with their evaluation URLs.

    A count outside [1, PARTICIPANT_BATCH_MAX] is rejected with 400.
    """
    participants = registry.create_batch(payload.count, label=payload.label)
    return ParticipantBatchResponse(
        participants=[ParticipantLink.from_participant(p) for p in participants],
        count=len(participants),
    )


@router.get(
    "",
    response_model=List[ParticipantLink],
    dependencies=[Depends(verify_admin_token)],
)
def list_participants(registry: ParticipantRegistry = Depends(get_participant_registry)):
    return [ParticipantLink.from_participant(p) for p in registry.list()]


@router.get("/{token}", response_model=ParticipantResponse)
def get_participant(
    token: str,
    registry: ParticipantRegistry = Depends(get_participant_registry),
):
    """Resolve a participant from the token in their QR link."""
    return ParticipantResponse.model_validate(registry.get_by_token(token))
