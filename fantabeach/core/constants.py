"""Global constants for the fantabeach application."""

# Reserved pair id stored for a side that is not decided yet.
PLACEHOLDER_PAIR_ID = "__TBD__"

# Progression
PROGRESSION_BEST_OF = 3
POOL_ADVANCE_ROUND = 1
MATCH_ID_PREFIX = "match"

# Scoring
BASE_POINT_SETS = 2
SWEEP_SET_COUNT = 2

# Scoring runs returned by the history endpoint
DEFAULT_SCORING_RUN_HISTORY_LIMIT = 20

# Audit actions
AUDIT_MATCH_COMPLETE = "match.complete"
AUDIT_MATCH_CREATE = "match.create"
AUDIT_MATCH_UPDATE = "match.update"
AUDIT_PROGRESSION_PREFIX = "match.progression"
AUDIT_SCORING_CONFIG_UPDATE = "scoring.config.update"
AUDIT_SCORING_RECALCULATE = "scoring.recalculate"
AUDIT_LEAGUE_RECOMPUTE = "league.recompute"

# Bounds of the audit log listing
DEFAULT_AUDIT_LOG_LIMIT = 100
MAX_AUDIT_LOG_LIMIT = 500

# Actor recorded when the request carries no admin identity
SYSTEM_ACTOR = "system"
