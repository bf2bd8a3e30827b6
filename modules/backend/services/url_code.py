"""
URL Code Generator.

Produces the short public identifiers notes are addressed by.
Codes are drawn from a cryptographically secure source and checked
against the store; the unique constraint on notes.url_code remains the
final guard against two writers picking the same code concurrently.
"""

import secrets
import string
from collections.abc import Callable

from modules.backend.core.exceptions import CodeSpaceExhaustedError
from modules.backend.core.logging import get_logger
from modules.backend.repositories.note import NoteRepository

logger = get_logger(__name__)

URL_CODE_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
URL_CODE_LENGTH = 8


def generate_code(
    length: int = URL_CODE_LENGTH,
    choice: Callable[[str], str] = secrets.choice,
) -> str:
    """Draw one random code without consulting the store."""
    return "".join(choice(URL_CODE_ALPHABET) for _ in range(length))


class UrlCodeGenerator:
    """
    Generates URL codes that no stored note holds.

    Expired notes that have not been purged yet still hold their codes.
    """

    def __init__(
        self,
        repo: NoteRepository,
        length: int = URL_CODE_LENGTH,
        max_attempts: int = 10,
        choice: Callable[[str], str] = secrets.choice,
    ) -> None:
        self.repo = repo
        self.length = length
        self.max_attempts = max_attempts
        self._choice = choice

    async def generate_unique_code(self) -> str:
        """
        Draw codes until one is not present in the store.

        Returns:
            An unused URL code

        Raises:
            CodeSpaceExhaustedError: If every draw within max_attempts collided
        """
        for attempt in range(1, self.max_attempts + 1):
            code = generate_code(self.length, self._choice)
            if not await self.repo.exists_by_code(code):
                return code
            logger.warning(
                "URL code collision",
                extra={"attempt": attempt, "max_attempts": self.max_attempts},
            )

        logger.error(
            "URL code generation exhausted",
            extra={"max_attempts": self.max_attempts, "length": self.length},
        )
        raise CodeSpaceExhaustedError(
            f"No unused URL code found after {self.max_attempts} attempts"
        )
