"""Pydantic schemas for the queue dump tool."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from common.utils import DateTimeUtils


class DumpConfig(BaseModel):
    """Run configuration handed to the dump driver."""

    uri: str = Field(..., description="AMQP URI of the broker")
    insecure_tls: bool = Field(
        default=False, description="Skip certificate checks for amqps:// URIs"
    )
    queue: str = Field(..., description="Name of the queue to dump")
    ack: bool = Field(
        default=False, description="Let the broker consume messages on delivery"
    )
    max_messages: int = Field(
        default=1000, ge=0, description="Maximum messages to dump, 0 = unlimited"
    )
    output_dir: Path = Field(
        default=Path("."), description="Directory in which to save the messages"
    )
    single_file: bool = Field(
        default=False, description="Aggregate all messages into one JSON file"
    )
    full: bool = Field(
        default=False, description="Also dump properties and headers"
    )
    verbose: bool = Field(default=False, description="Trace progress")
    fetch_timeout: Optional[float] = Field(
        default=None, gt=0, description="Seconds to wait for a broker reply"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("queue")
    @classmethod
    def validate_queue(cls, v: str) -> str:
        """Reject an empty queue name."""
        if not v:
            raise ValueError("Must supply queue name")
        return v


class MessageProperties(BaseModel):
    """AMQP basic properties plus delivery routing information."""

    app_id: Optional[str] = None
    content_encoding: Optional[str] = None
    content_type: Optional[str] = None
    correlation_id: Optional[str] = None
    delivery_mode: Optional[int] = None
    expiration: Optional[str] = None
    message_id: Optional[str] = None
    priority: Optional[int] = None
    reply_to: Optional[str] = None
    type: Optional[str] = None
    user_id: Optional[str] = None
    exchange: Optional[str] = None
    routing_key: Optional[str] = None
    timestamp: Optional[datetime] = None


class DumpedMessage(BaseModel):
    """A message retrieved from the broker, ready to be persisted."""

    body: bytes = b""
    properties: MessageProperties = Field(default_factory=MessageProperties)
    headers: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_incoming(cls, incoming: Any) -> "DumpedMessage":
        """
        Build a DumpedMessage from an aio-pika incoming message.

        Args:
            incoming: aio_pika.abc.AbstractIncomingMessage (or anything with the same attributes)

        Returns:
            DumpedMessage with the body, properties and headers of the delivery
        """
        delivery_mode = getattr(incoming, "delivery_mode", None)
        expiration = getattr(incoming, "expiration", None)
        timestamp = getattr(incoming, "timestamp", None)
        if timestamp is not None and not isinstance(timestamp, datetime):
            timestamp = datetime.fromtimestamp(timestamp, tz=timezone.utc)

        properties = MessageProperties(
            app_id=getattr(incoming, "app_id", None),
            content_encoding=getattr(incoming, "content_encoding", None),
            content_type=getattr(incoming, "content_type", None),
            correlation_id=getattr(incoming, "correlation_id", None),
            delivery_mode=int(delivery_mode) if delivery_mode is not None else None,
            expiration=(
                DateTimeUtils.format_expiration(expiration)
                if expiration is not None
                else None
            ),
            message_id=getattr(incoming, "message_id", None),
            priority=getattr(incoming, "priority", None),
            reply_to=getattr(incoming, "reply_to", None),
            type=getattr(incoming, "type", None),
            user_id=getattr(incoming, "user_id", None),
            exchange=getattr(incoming, "exchange", None),
            routing_key=getattr(incoming, "routing_key", None),
            timestamp=timestamp,
        )

        return cls(
            body=bytes(incoming.body or b""),
            properties=properties,
            headers=dict(incoming.headers or {}),
        )
