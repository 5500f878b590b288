"""
Record shapes stored and read by the bot.

Users are persisted in the users collection; order updates arrive from
the food-delivery webhook.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Schedule(BaseModel):
    """Time window during which a user wants notifications."""
    
    model_config = ConfigDict(populate_by_name=True)
    
    from_: str = Field(alias="from")
    to: str


class User(BaseModel):
    user_id: str
    channel_id: str = ""
    team_domain: str = ""
    schedule: List[Schedule] = Field(default_factory=list)
    address_ids: List[str] = Field(default_factory=list)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class DeliveryDetails(_Payload):
    delivery_status: int = Field(0, alias="deliveryStatus")
    delivery_label: str = Field("", alias="deliveryLabel")
    delivery_message: str = Field("", alias="deliveryMessage")


class RestaurantInfo(_Payload):
    name: str = ""


class Order(_Payload):
    order_id: int = Field(alias="orderId")
    status: int = 0
    payment_status: int = Field(0, alias="paymentStatus")
    delivery_details: Optional[DeliveryDetails] = Field(None, alias="deliveryDetails")
    res_info: Optional[RestaurantInfo] = Field(None, alias="resInfo")


class OrderUpdate(_Payload):
    """Webhook payload describing a change in an order's delivery state."""
    
    order: Order
