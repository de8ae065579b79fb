"""
Typed failures raised by the draw engine.

All of these are deterministic input-validation errors: callers surface them
to the user and never retry.
"""


class TournamentError(Exception):
    """Base class for every draw engine failure."""

    @property
    def code(self) -> str:
        return type(self).__name__


class InvalidPolicy(TournamentError):
    """Unknown seeding policy, bye assignment or partial-zone policy."""


class InvalidConfiguration(TournamentError):
    """A settings value is out of range or of the wrong type."""


class EmptyEntrantList(TournamentError):
    """No couples were supplied where at least one is required."""


class AmbiguousSeed(TournamentError):
    """Two couples share a seed rank and a registration timestamp."""


class BracketSizeOverflow(TournamentError):
    """More entrants than the configured maximum."""


class InvalidZoneSize(TournamentError):
    """Zone size below 2."""


class InsufficientEntrants(TournamentError):
    """Not enough couples to fill zones when partial zones are disallowed."""


class DuplicateCouple(TournamentError):
    """A couple id is already registered."""


class MatchNotFound(TournamentError):
    """No match with the given id."""


class MatchNotPlayable(TournamentError):
    """The match still waits for an entrant, or is a bye."""


class MatchAlreadyDecided(TournamentError):
    """The result can no longer change because the next match has started."""


class InvalidResult(TournamentError):
    """Winner not in the match, or scores that do not decide a winner."""


class InvalidTransition(TournamentError):
    """Tournament status does not allow the requested operation."""
