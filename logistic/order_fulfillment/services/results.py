"""
Typed results returned by the allocation engine.
"""

from dataclasses import dataclass, field, asdict
from decimal import Decimal
from typing import List, Optional, Dict, Any


@dataclass(frozen=True)
class ShortageLine:
    """Outstanding demand for one product of one order."""
    product_id: int
    sku: str
    ordered_qty: int
    allocated_qty: int

    @property
    def shortage(self) -> int:
        return max(0, self.ordered_qty - self.allocated_qty)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['shortage'] = self.shortage
        return data


@dataclass(frozen=True)
class AllocationLine:
    """A line that was applied."""
    product_id: int
    previous_qty: int
    allocated_qty: int

    @property
    def delta(self) -> int:
        return self.allocated_qty - self.previous_qty

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['delta'] = self.delta
        return data


@dataclass(frozen=True)
class LineRejection:
    """A line that failed validation, with the most that could be allocated."""
    product_id: Any
    requested_qty: Any
    max_allocatable: int
    error_code: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AllocationResult:
    order_id: Any
    status: str
    lines: List[AllocationLine] = field(default_factory=list)
    rejected: List[LineRejection] = field(default_factory=list)
    shortage: List[ShortageLine] = field(default_factory=list)
    allocated_total: Decimal = Decimal('0.00')
    backorder_order_id: Optional[Any] = None

    @property
    def total_shortage(self) -> int:
        return sum(line.shortage for line in self.shortage)

    @property
    def is_fully_allocated(self) -> bool:
        return self.total_shortage == 0

    @property
    def has_rejections(self) -> bool:
        return bool(self.rejected)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'order_id': str(self.order_id),
            'status': self.status,
            'allocation_status': 'fully_allocated' if self.is_fully_allocated else 'partially_allocated',
            'lines': [line.to_dict() for line in self.lines],
            'rejected': [line.to_dict() for line in self.rejected],
            'shortage': [line.to_dict() for line in self.shortage],
            'total_shortage': self.total_shortage,
            'allocated_total': str(self.allocated_total),
            'backorder_order_id': str(self.backorder_order_id) if self.backorder_order_id else None,
        }
