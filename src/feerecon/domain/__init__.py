"""Domain layer for feerecon."""

from importlib import import_module

# Services are imported lazily: the database layer imports domain entities,
# and the services import the database layer.
_EXPORTS = {
    "BankProfileService": "feerecon.domain.bank_profile",
    "ManualOverrideService": "feerecon.domain.overrides",
    "MatchingEngine": "feerecon.domain.matching",
    "ScoringConfig": "feerecon.domain.scoring",
    "SessionService": "feerecon.domain.session",
    "SummaryService": "feerecon.domain.summary",
    "score_match": "feerecon.domain.scoring",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name):
    if name in _EXPORTS:
        return getattr(import_module(_EXPORTS[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
