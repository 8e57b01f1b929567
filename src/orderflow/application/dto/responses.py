from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class OrderItemResponse(BaseModel):
    itemId: str
    orderId: str
    menuItemId: str
    quantity: int
    status: str
    note: str | None = None
    createdAt: datetime
    updatedAt: datetime
    startedAt: datetime | None = None
    completedAt: datetime | None = None


class OrderResponse(BaseModel):
    orderId: str
    restaurantId: str
    tableId: str | None = None
    staffId: str
    status: str
    servePolicy: str
    customerName: str | None = None
    customerPhone: str | None = None
    note: str | None = None
    createdAt: datetime
    updatedAt: datetime
    version: int
    items: list[OrderItemResponse] = Field(default_factory=list)


class OrdersResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)


class TableResponse(BaseModel):
    tableId: str
    restaurantId: str
    label: str
    status: str
    updatedAt: datetime


class TablesResponse(BaseModel):
    tables: list[TableResponse] = Field(default_factory=list)


class EventResponse(BaseModel):
    eventId: str
    entityType: str
    entityId: str
    orderId: str | None = None
    eventType: str
    oldValue: str | None = None
    newValue: str | None = None
    actorId: str
    occurredAt: datetime


class OrderEventsResponse(BaseModel):
    orderId: str
    events: list[EventResponse] = Field(default_factory=list)


class KitchenItemResponse(BaseModel):
    itemId: str
    menuItemId: str
    name: str
    quantity: int
    status: str
    note: str | None = None
    prepTimeMinutes: int | None = None
    isBlocking: bool
    hint: str


class KitchenOrderResponse(BaseModel):
    orderId: str
    tableId: str | None = None
    tableLabel: str | None = None
    servePolicy: str
    column: str
    heat: str
    pulse: bool
    blocking: bool
    createdAt: datetime
    lastProgressAt: datetime
    budgetSeconds: int
    note: str | None = None
    customerName: str | None = None
    items: list[KitchenItemResponse] = Field(default_factory=list)


class KitchenColumnsResponse(BaseModel):
    pending: list[KitchenOrderResponse] = Field(default_factory=list)
    preparing: list[KitchenOrderResponse] = Field(default_factory=list)
    ready: list[KitchenOrderResponse] = Field(default_factory=list)


class KitchenViewResponse(BaseModel):
    restaurantId: str
    generatedAt: datetime
    columns: KitchenColumnsResponse
