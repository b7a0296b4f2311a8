"""Import all models so they are registered on Base.metadata."""
from support_chat.infrastructure.db.models.conversation import ConversationModel
from support_chat.infrastructure.db.models.identity import AdminUserModel, UserModel
from support_chat.infrastructure.db.models.message import MessageModel
from support_chat.infrastructure.db.models.participant import ParticipantModel

__all__ = [
    "AdminUserModel",
    "ConversationModel",
    "MessageModel",
    "ParticipantModel",
    "UserModel",
]
