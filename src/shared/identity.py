"""The authenticated fest user as handed over by the identity provider."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthenticatedUser:
    """A signed-in user.

    ``id`` is the identity provider's user id (the backend calls it
    ``kindeId``). ``affiliation`` is the institution code verified by the
    backend and carried as a token claim; it is ``None`` until verified.
    """

    id: str
    email: str | None = None
    name: str | None = None
    affiliation: str | None = None

    @property
    def is_identified(self) -> bool:
        return bool(self.id)
