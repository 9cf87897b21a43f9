"""
Data models for storage layer.

Defines the persisted depreciation record.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AssetDepreciationRecord:
    """One month of an asset's depreciation schedule.

    Records are written once per submission and never updated in place.
    """
    asset_id: str
    company_id: str
    financial_year: str
    month: int
    initial_cost: float
    depreciation_percentage: float
    monthly_depreciation_cost: float
    total_depreciated_cost: float
    mfd: Optional[datetime] = None
    manufacturing_year: Optional[int] = None
    manufacturing_month: Optional[int] = None

    def to_document(self) -> Dict[str, Any]:
        """Return the record in its external camelCase document shape."""
        return {
            "assetId": self.asset_id,
            "companyId": self.company_id,
            "financialYear": self.financial_year,
            "month": self.month,
            "initialCost": self.initial_cost,
            "depreciationPercentage": self.depreciation_percentage,
            "monthlyDepreciationCost": self.monthly_depreciation_cost,
            "totalDepreciatedCost": self.total_depreciated_cost,
            "mfd": self.mfd.isoformat() if self.mfd else None,
            "manufacturingYear": self.manufacturing_year,
            "manufacturingMonth": self.manufacturing_month,
        }
