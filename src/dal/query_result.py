from dataclasses import dataclass
from typing import Any, Dict, Optional

Row = Dict[str, Any]


@dataclass(frozen=True)
class RunResult:
    """Normalized outcome of a mutating statement.

    ``id`` is the generated key of an INSERT (None when the statement is not
    an INSERT or inserted nothing); ``changes`` is the affected row count.
    """

    id: Optional[int]
    changes: int

    def as_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "changes": self.changes}
