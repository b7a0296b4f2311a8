from __future__ import annotations

from support_chat.domain.entities.participant import Participant
from support_chat.infrastructure.db.models.participant import ParticipantModel


def model_to_entity(model: ParticipantModel) -> Participant:
    return Participant(
        conversation_id=model.conversation_id,
        admin_user_id=model.admin_user_id,
        last_read_at=model.last_read_at,
        created_at=model.created_at,
    )
