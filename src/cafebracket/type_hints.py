"""Type hints used in Cafe Bracket."""

from typing import Any, Callable, Dict, Literal, Optional, Sequence

# Players are identified by their display name
Roster = Sequence[str]

# Presentational urgency of the round clock
Urgency = Literal["nominal", "warning", "critical"]

Medal = Optional[Literal["gold", "silver", "bronze"]]

# Serialized tournament document and its partial writes
Document = Dict[str, Any]
DocumentFields = Dict[str, Any]
SnapshotCallback = Callable[[Document], None]
