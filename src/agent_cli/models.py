"""Wire models for the agent service REST API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    """Base model using the camelCase field names of the agent service."""

    model_config = ConfigDict(populate_by_name=True)


class SendMessageRequest(ApiModel):
    message: str
    thread_id: Optional[str] = Field(default=None, alias="threadId")


class AgentResponse(ApiModel):
    thread_id: str = Field(alias="threadId")
    message: str
    timestamp: Optional[datetime] = None


class UserProfile(ApiModel):
    preferred_agent_instructions: Optional[str] = Field(
        default=None, alias="preferredAgentInstructions"
    )
    custom_workflows_json: Optional[str] = Field(
        default=None, alias="customWorkflowsJson"
    )


class ConversationMetadata(ApiModel):
    id: int
    thread_id: str = Field(alias="threadId")
    title: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    last_message_at: Optional[datetime] = Field(default=None, alias="lastMessageAt")


class ErrorResponse(ApiModel):
    error: Optional[str] = None
    message: Optional[str] = None
