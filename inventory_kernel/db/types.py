"""
Annotated column types shared by the models.

The scales come from ``domain.values`` so rounding in the pure layer and the
stored precision cannot drift apart.
"""

from decimal import Decimal
from typing import Annotated

from sqlalchemy import Numeric, String

from inventory_kernel.domain.values import COST_DECIMAL_PLACES, QUANTITY_DECIMAL_PLACES

Quantity = Annotated[Decimal, Numeric(18, QUANTITY_DECIMAL_PLACES)]

Cost = Annotated[Decimal, Numeric(18, COST_DECIMAL_PLACES)]

# hex SHA-256
PayloadHash = Annotated[str, String(64)]
