# Cafe Bracket
# Copyright (C) 2025  Cafe Bracket developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

# --- Constants ---
SAVE_FILE_EXTENSION = ".json"
ENV_PREFIX = "CAFEBRACKET_"
DEFAULT_DATA_DIR = "~/.cafebracket/tournaments"

# Defaults offered by the tournament creation form
DEFAULT_TOTAL_ROUNDS = 3
DEFAULT_ROUND_MINUTES = 50
MIN_ROSTER_SIZE = 2

# Lifecycle state values as stored in the document
STATE_PENDING = "pending"
STATE_ACTIVE = "active"
STATE_FINISHED = "finished"

# Round timer
SECONDS_PER_MINUTE = 60
TIMER_TICK_INTERVAL_MS = 1000

# Timer states
TIMER_IDLE = "idle"
TIMER_RUNNING = "running"
TIMER_PAUSED = "paused"
TIMER_FINISHED = "finished"

# Urgency bands, expressed as remaining / duration
URGENCY_NOMINAL = "nominal"
URGENCY_WARNING = "warning"
URGENCY_CRITICAL = "critical"
URGENCY_NOMINAL_ABOVE = 0.5
URGENCY_CRITICAL_BELOW = 0.2

# Medals, by final rank (0-indexed)
MEDAL_GOLD = "gold"
MEDAL_SILVER = "silver"
MEDAL_BRONZE = "bronze"
MEDALS_BY_RANK = (MEDAL_GOLD, MEDAL_SILVER, MEDAL_BRONZE)

MEDAL_SYMBOLS = {
    MEDAL_GOLD: "\U0001f947",
    MEDAL_SILVER: "\U0001f948",
    MEDAL_BRONZE: "\U0001f949",
}

# Document field names used for partial (whole-field) writes
FIELD_HISTORY = "history"
FIELD_CURRENT_ROUND = "currentRoundNumber"
FIELD_LIFECYCLE_STATE = "lifecycleState"
REPLACEABLE_FIELD_SETS = (
    frozenset({FIELD_HISTORY}),
    frozenset({FIELD_HISTORY, FIELD_CURRENT_ROUND}),
    frozenset({FIELD_LIFECYCLE_STATE}),
)
