from dataclasses import dataclass
from typing import Literal, Protocol


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class CompletionRequest:
    prompt: str
    system: str = ""
    model: str | None = None
    max_tokens: int = 2000
    temperature: float = 0.1

    def messages(self) -> list[ChatMessage]:
        messages: list[ChatMessage] = []
        if self.system:
            messages.append(ChatMessage(role="system", content=self.system))
        messages.append(ChatMessage(role="user", content=self.prompt))
        return messages


class AIClient(Protocol):
    name: str

    async def complete(self, request: CompletionRequest) -> str: ...


class AIUnavailableError(RuntimeError):
    def __init__(self, message: str, *, code: str = "llm_unavailable"):
        super().__init__(message)
        self.code = code
