"""Client-only draft AOIs, cached locally and never synced remotely."""

from aoimap.drafts.models import DraftAOI
from aoimap.drafts.store import DraftStore

__all__ = ["DraftAOI", "DraftStore"]
