"""Display models produced by the asset table renderer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class TableFilters:
	"""Caller-supplied table options; raw values are normalized by the renderer."""

	language: Optional[str] = None
	currency: Optional[str] = None
	limit: Any = None


@dataclass
class TableRow:
	"""One rendered asset row. Text fields are already HTML-escaped."""

	id: int
	thumbnail_url: str
	title: str
	category: str
	brand: str
	model: str
	specs: str
	valuation: str
	confidence: str
	date: str
	language: str
	currency: str


@dataclass
class TableModel:
	"""Rows plus the fixed header and the placeholder shown when empty."""

	headers: Tuple[str, ...]
	limit: int
	rows: List[TableRow] = field(default_factory=list)
	empty_message: Optional[str] = None

	def to_dict(self) -> Dict[str, Any]:
		return {
			"headers": list(self.headers),
			"limit": self.limit,
			"rows": [asdict(row) for row in self.rows],
			"empty_message": self.empty_message,
		}
