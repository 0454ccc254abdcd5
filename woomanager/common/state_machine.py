"""Store-connection handshake states and allowed transitions."""

from dataclasses import dataclass, field

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "INITIATED": {"AWAITING_CALLBACK", "FAILED"},
    "AWAITING_CALLBACK": {"CREDENTIALS_PERSISTED", "FAILED"},
    "CREDENTIALS_PERSISTED": {"WEBHOOKS_PROVISIONED"},
    "WEBHOOKS_PROVISIONED": set(),
    "FAILED": set(),
}


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Invalid transition: {current} -> {new}")


@dataclass
class HandshakeProgress:
    """In-memory trail of one handshake request.

    Nothing here is persisted: the durable state is whatever has been written
    to the store record, and a failed handshake is restarted from scratch.
    """

    state: str = "INITIATED"
    history: list[str] = field(default_factory=lambda: ["INITIATED"])

    def advance(self, new: str) -> None:
        validate_transition(self.state, new)
        self.state = new
        self.history.append(new)
