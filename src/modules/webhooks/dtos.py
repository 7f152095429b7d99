"""Webhook DTOs.

``WebhookOutputDTO`` never carries the signing secret;
``WebhookCreatedDTO`` is only used for the creation response.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.webhooks.entities import Webhook


class CreateWebhookDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    events: List[str]
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class WebhookOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    events: List[str]
    description: Optional[str]
    active: bool
    created_at: datetime
    metadata: Dict[str, Any]

    @classmethod
    def from_entity(cls, webhook: Webhook) -> WebhookOutputDTO:
        return cls(
            id=webhook.id,
            url=webhook.url,
            events=webhook.events,
            description=webhook.description,
            active=webhook.active,
            created_at=webhook.created_at,
            metadata=webhook.metadata,
        )


class WebhookCreatedDTO(WebhookOutputDTO):
    secret: str

    @classmethod
    def from_entity(cls, webhook: Webhook) -> WebhookCreatedDTO:
        return cls(
            **WebhookOutputDTO.from_entity(webhook).model_dump(),
            secret=webhook.secret,
        )
