"""Version-control access."""

from .vcs import GitVcs, StaticVcs, VcsProtocol

__all__ = ["GitVcs", "StaticVcs", "VcsProtocol"]
