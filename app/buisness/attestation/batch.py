"""
Per-item outcome of a bulk operation

Bulk operations never fail atomically once per-item work begins; each item
lands in exactly one of succeeded or failed.
"""

from dataclasses import dataclass, field
from typing import Any, List, Tuple


@dataclass
class BatchResult:
    succeeded: List[Any] = field(default_factory=list)
    failed: List[Tuple[Any, str]] = field(default_factory=list)

    def add_success(self, item: Any) -> None:
        self.succeeded.append(item)

    def add_failure(self, item: Any, error) -> None:
        self.failed.append((item, str(error)))

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    def extend(self, other: 'BatchResult') -> 'BatchResult':
        self.succeeded.extend(other.succeeded)
        self.failed.extend(other.failed)
        return self

    def to_dict(self) -> dict:
        return {
            'succeeded': list(self.succeeded),
            'failed': [{'item': item, 'error': error} for item, error in self.failed],
        }
