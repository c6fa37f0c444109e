import asyncio
import json
import logging

import aio_pika
from sqlalchemy import select

from hms import config
from hms.database.engine import AsyncSessionLocal
from hms.reservations.models import OutboxEvent

logger = logging.getLogger(__name__)


async def publish_pending_events(session, rabbitmq_url: str = None, queue_name: str = None, batch_size: int = 10) -> int:
    """Publish one batch of PENDING outbox events; returns how many were sent."""
    query = (
        select(OutboxEvent)
        .where(OutboxEvent.status == "PENDING")
        .order_by(OutboxEvent.id)
        .limit(batch_size)
        .with_for_update(skip_locked=True)
    )
    result = await session.execute(query)
    events = result.scalars().all()
    if not events:
        return 0

    queue_name = queue_name or config.OUTBOX_QUEUE
    connection = await aio_pika.connect_robust(rabbitmq_url or config.RABBITMQ_URL)
    async with connection:
        channel = await connection.channel()
        await channel.declare_queue(queue_name, durable=True)

        for event in events:
            body = json.dumps({
                "event_type": event.event_type,
                "payload": event.payload,
            }).encode()

            await channel.default_exchange.publish(
                aio_pika.Message(
                    body=body,
                    delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                ),
                routing_key=queue_name,
            )
            event.status = "PROCESSED"

    await session.commit()
    return len(events)


async def publish_outbox_events():
    """Background loop draining the outbox into RabbitMQ."""
    while True:
        async with AsyncSessionLocal() as session:
            try:
                sent = await publish_pending_events(session)
            except Exception as e:
                logger.error("Error publishing outbox events: %s", e)
                await session.rollback()
                await asyncio.sleep(config.OUTBOX_POLL_SECONDS * 2)
                continue

        if sent:
            logger.info("Published %s outbox events", sent)
        else:
            await asyncio.sleep(config.OUTBOX_POLL_SECONDS)
