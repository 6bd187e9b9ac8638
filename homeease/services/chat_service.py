import logging
from datetime import datetime
from typing import List, Optional, Sequence
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from homeease.db.db_models import User, ChatRoom, Message, Booking, UserRole
from homeease.models.chat import ChatRoomResponse, MessageCreate

logger = logging.getLogger(__name__)


# ─── Chat Rooms ──────────────────────────────────────────────────────

async def find_or_create_room(
    db: AsyncSession, customer: User, provider_id: str, booking_id: Optional[str] = None
) -> ChatRoom:
    """Return the active room between a customer and a provider, creating it if needed."""
    result = await db.execute(select(User).where(User.id == provider_id))
    provider = result.scalar_one_or_none()
    if not provider or provider.role != UserRole.PROVIDER.value:
        raise HTTPException(status_code=404, detail="Provider not found")

    if booking_id:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking or booking.customer_id != customer.id or booking.provider_id != provider_id:
            raise HTTPException(status_code=404, detail="Booking not found")

    existing = await db.execute(
        select(ChatRoom).where(
            ChatRoom.customer_id == customer.id,
            ChatRoom.provider_id == provider_id,
            ChatRoom.is_active == True,
        )
    )
    room = existing.scalars().first()
    if room:
        return room

    room = ChatRoom(customer_id=customer.id, provider_id=provider_id, booking_id=booking_id)
    db.add(room)
    await db.flush()
    await db.refresh(room)
    logger.info("Chat room %s opened between %s and %s", room.id, customer.id, provider_id)
    return room


async def list_rooms(db: AsyncSession, user: User) -> Sequence[ChatRoom]:
    result = await db.execute(
        select(ChatRoom).where(
            or_(
                ChatRoom.customer_id == user.id,
                ChatRoom.provider_id == user.id,
            )
        ).order_by(ChatRoom.last_message_at.desc())
    )
    return result.scalars().all()


async def get_room_for(db: AsyncSession, room_id: str, user: User) -> ChatRoom:
    result = await db.execute(select(ChatRoom).where(ChatRoom.id == room_id))
    room = result.scalar_one_or_none()
    if not room:
        raise HTTPException(status_code=404, detail="Chat room not found")
    if user.id not in [room.customer_id, room.provider_id]:
        raise HTTPException(status_code=403, detail="Not authorized")
    return room


async def describe_rooms(db: AsyncSession, rooms: Sequence[ChatRoom], viewer: User) -> List[ChatRoomResponse]:
    responses = []
    for room in rooms:
        # Get last message
        msg_result = await db.execute(
            select(Message)
            .where(Message.chat_room_id == room.id)
            .order_by(Message.created_at.desc())
            .limit(1)
        )
        last_msg = msg_result.scalars().first()

        unread_result = await db.execute(
            select(func.count(Message.id)).where(
                Message.chat_room_id == room.id,
                Message.receiver_id == viewer.id,
                Message.is_read == False,
            )
        )

        # Get names
        names_result = await db.execute(
            select(User).where(User.id.in_([room.customer_id, room.provider_id]))
        )
        names = {u.id: u.name for u in names_result.scalars().all()}

        responses.append(ChatRoomResponse(
            id=room.id,
            customer_id=room.customer_id,
            provider_id=room.provider_id,
            booking_id=room.booking_id,
            is_active=room.is_active,
            last_message_at=room.last_message_at,
            created_at=room.created_at,
            last_message=last_msg.content if last_msg else None,
            unread_count=unread_result.scalar() or 0,
            customer_name=names.get(room.customer_id),
            provider_name=names.get(room.provider_id),
        ))
    return responses


# ─── Messages ────────────────────────────────────────────────────────

async def read_messages(db: AsyncSession, room: ChatRoom, reader: User) -> Sequence[Message]:
    """Messages in chronological order; those addressed to the reader are marked read."""
    result = await db.execute(
        select(Message)
        .where(Message.chat_room_id == room.id)
        .order_by(Message.created_at.asc())
    )
    messages = result.scalars().all()

    now = datetime.utcnow()
    for message in messages:
        if message.receiver_id == reader.id and not message.is_read:
            message.is_read = True
            message.read_at = now
    await db.flush()
    return messages


async def send_message(db: AsyncSession, room: ChatRoom, sender: User, message_in: MessageCreate) -> Message:
    if not room.is_active:
        raise HTTPException(status_code=400, detail="Chat room is closed")

    receiver_id = room.provider_id if sender.id == room.customer_id else room.customer_id
    message = Message(
        chat_room_id=room.id,
        sender_id=sender.id,
        receiver_id=receiver_id,
        content=message_in.content,
        message_type=message_in.message_type.value,
    )
    db.add(message)
    room.last_message_at = datetime.utcnow()
    await db.flush()
    await db.refresh(message)
    return message
