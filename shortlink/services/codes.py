"""Random short code generation."""

import secrets
import string

BASE62 = string.ascii_letters + string.digits


def generate_code(length: int, alphabet: str = BASE62) -> str:
    """
    Generate a random code of exactly ``length`` characters.

    Characters are drawn uniformly and independently from ``alphabet`` with
    a CSPRNG. Uniqueness is not guaranteed; callers insert against a unique
    index and retry.

    Raises:
        ValueError: If length is below 1 or the alphabet is empty
    """
    if length < 1:
        raise ValueError("length must be at least 1")
    if not alphabet:
        raise ValueError("alphabet must not be empty")
    return "".join(secrets.choice(alphabet) for _ in range(length))


class CodeGenerator:
    """Code generator with a fixed length and alphabet, called with no arguments."""

    def __init__(self, length: int = 7, alphabet: str = BASE62):
        if length < 1:
            raise ValueError("length must be at least 1")
        if not alphabet:
            raise ValueError("alphabet must not be empty")
        self.length = length
        self.alphabet = alphabet

    def __call__(self) -> str:
        return generate_code(self.length, self.alphabet)

    @property
    def keyspace(self) -> int:
        """Number of distinct codes this generator can produce."""
        return len(set(self.alphabet)) ** self.length
