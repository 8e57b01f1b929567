from __future__ import annotations

from typing import NewType

RestaurantId = NewType("RestaurantId", str)
MenuItemId = NewType("MenuItemId", str)
TableId = NewType("TableId", str)
OrderId = NewType("OrderId", str)
OrderItemId = NewType("OrderItemId", str)
StaffId = NewType("StaffId", str)
EventId = NewType("EventId", str)

SYSTEM_ACTOR = StaffId("SYSTEM")
