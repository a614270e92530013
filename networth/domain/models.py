"""Name types for networth.

These NewTypes provide semantic clarity and help with type checking:
- CategoryName: Name of a group of assets tracked as one balance
- AssetName: Name of a single asset inside a category
- FlowName: Name of a flow, unique within its category
"""

from typing import NewType

CategoryName = NewType("CategoryName", str)

AssetName = NewType("AssetName", str)

# Flow names key the per-month transaction map of a category
FlowName = NewType("FlowName", str)

TAX_ADJUSTMENT_FLOW = FlowName("Tax adjustment")
