"""Contract for generative image edit providers."""

from typing import Protocol

from printapic.domain.edits import INSTRUCTIONS
from printapic.domain.errors import UnsupportedOperation


class EditProviderClient(Protocol):
    """Interface for remote image editing."""

    async def submit_edit(self, image_bytes: bytes, instruction_key: str) -> bytes:
        """Edit the image with the keyed instruction and return the result bytes."""


def resolve_instruction(instruction_key: str) -> str:
    """Return the natural-language instruction for a key."""
    try:
        return INSTRUCTIONS[instruction_key]
    except KeyError:
        raise UnsupportedOperation(
            f"Unsupported instruction: {instruction_key}"
        ) from None
