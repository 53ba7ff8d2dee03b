"""
Value types shared by the context model and the block variants.
"""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MessageRole(str, Enum):
    """Role tag of a rendered message."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single role-tagged message produced by a block."""
    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``{"role", "content"}`` shape chat APIs expect."""
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class BlockId:
    """Opaque identity of a block.

    Toggle state is keyed by ``BlockId`` rather than by raw strings so that
    lookups cannot collide with unrelated string-keyed maps.
    """
    value: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def generate(cls) -> "BlockId":
        return cls()

    def __str__(self) -> str:
        return self.value
