"""Chat request validation: a conversation of user and assistant turns."""

from dataclasses import dataclass

CHAT_ROLES = ("user", "assistant")


def message_text(message: dict) -> str:
    """Text of one message.

    Accepts plain ``content`` strings and UI-style ``parts`` lists, where only
    ``{"type": "text", "text": ...}`` parts contribute.
    """
    content = message.get("content")
    if isinstance(content, str):
        return content
    parts = message.get("parts")
    if isinstance(parts, list):
        return "".join(
            p["text"] for p in parts
            if isinstance(p, dict) and p.get("type") == "text" and isinstance(p.get("text"), str)
        )
    return ""


@dataclass(frozen=True)
class ChatRequest:
    """A validated chat request: alternating turns ending with the user."""
    messages: tuple[dict, ...]

    @classmethod
    def from_body(cls, body) -> "ChatRequest":
        """Validate a decoded JSON body. Raises ValueError with a client-facing message."""
        if not isinstance(body, dict):
            raise ValueError("Request body must be a JSON object")
        raw = body.get("messages")
        if not isinstance(raw, list) or not raw:
            raise ValueError("Messages are required")

        messages = []
        for message in raw:
            if not isinstance(message, dict) or message.get("role") not in CHAT_ROLES:
                raise ValueError("Each message needs a role of 'user' or 'assistant'")
            text = message_text(message)
            # Empty turns (tool-only UI messages) carry nothing the model can use
            if not text.strip():
                continue
            if messages and messages[-1]["role"] == message["role"]:
                messages[-1]["content"] += "\n\n" + text
            else:
                messages.append({"role": message["role"], "content": text})

        if not messages or messages[-1]["role"] != "user":
            raise ValueError("The last message must be from the user")
        if messages[0]["role"] != "user":
            messages = messages[1:]
        return cls(messages=tuple(messages))
