"""User document model. The file itself lives in object storage under ``{user_id}/{id}``."""

import uuid

from sqlmodel import Field, SQLModel

from fitclub_shared.schemas.common import DocumentType

from .base import CreatedAtMixin, UUIDMixin


class UserDocument(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "user_documents"

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    document_type: str = Field(default=DocumentType.IMAGE.value, nullable=False)
