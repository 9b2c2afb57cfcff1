"""Cloud AI Companion task completion models."""

from typing import List, Optional

from pydantic import Field

from cloud_assist_lib.constants import (
    CHAT_INPUT_CONTEXT_TYPE,
    COMPANION_AGENT,
    COMPANION_EXPERIENCE,
    COMPANION_SOURCE_URI,
)
from cloud_assist_lib.models.investigation import ApiModel


class TaskCompletionMessage(ApiModel):
    content: Optional[str] = None
    author: Optional[str] = None


class TaskInput(ApiModel):
    messages: List[TaskCompletionMessage] = Field(default_factory=list)


class ExperienceContext(ApiModel):
    experience: str = COMPANION_EXPERIENCE
    agent: str = COMPANION_AGENT


class ChatInputContext(ApiModel):
    type_url: str = Field(default=CHAT_INPUT_CONTEXT_TYPE, alias="@type")
    source_uri: str = COMPANION_SOURCE_URI
    project_id: str


class InputDataContext(ApiModel):
    additional_context: ChatInputContext


class TaskCompletionRequest(ApiModel):
    """Body of a ``completeTask`` call carrying one user message."""

    input: TaskInput
    experience_context: ExperienceContext = Field(default_factory=ExperienceContext)
    input_data_context: InputDataContext

    @classmethod
    def for_question(cls, question: str, project_id: str) -> "TaskCompletionRequest":
        return cls(
            input=TaskInput(messages=[TaskCompletionMessage(content=question, author="user")]),
            input_data_context=InputDataContext(
                additional_context=ChatInputContext(project_id=project_id)
            ),
        )


class TaskCompletionResponse(ApiModel):
    output: Optional[TaskInput] = None

    @property
    def answer(self) -> Optional[str]:
        """Content of the first output message."""
        if self.output is None or not self.output.messages:
            return None
        return self.output.messages[0].content
