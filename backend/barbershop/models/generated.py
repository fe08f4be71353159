from sqlalchemy import Column, ForeignKey, Index, Integer, Numeric, Text, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Barbers(Base):
    __tablename__ = 'barbers'

    barber_id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    display_order = Column(Integer, nullable=False, server_default=text('0'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    bookings = relationship('Bookings', back_populates='barber')
    queue_entries = relationship('WalkInQueue', back_populates='barber')


class Services(Base):
    __tablename__ = 'services'

    service_id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    duration = Column(Integer, nullable=False, server_default=text('40'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    price = Column(Numeric)
    description = Column(Text)
    display_order = Column(Integer, nullable=False, server_default=text('0'))

    bookings = relationship('Bookings', back_populates='service')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index('idx_bookings_slot', 'appointment_date', 'appointment_time'),
        Index('idx_bookings_status', 'status'),
        Index('idx_bookings_customer_phone', 'customer_phone'),
    )

    id = Column(Integer, primary_key=True)
    booking_id = Column(Text, nullable=False, unique=True)
    ticket_number = Column(Text, nullable=False, unique=True)
    status = Column(Text, nullable=False, server_default=text("'confirmed'"))
    appointment_date = Column(Text, nullable=False)
    appointment_time = Column(Text, nullable=False)
    slot_duration = Column(Integer, nullable=False, server_default=text('40'))
    customer_name = Column(Text, nullable=False)
    customer_email = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=False)
    service_id = Column(ForeignKey('services.service_id', ondelete='SET NULL'))
    barber_id = Column(ForeignKey('barbers.barber_id', ondelete='SET NULL'))  # NULL = any barber
    special_request = Column(Text)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
    confirmed_at = Column(Text)
    completed_at = Column(Text)
    cancelled_at = Column(Text)
    cancellation_reason = Column(Text)
    cancelled_by = Column(Text)
    original_booking_id = Column(Text)

    barber = relationship('Barbers', back_populates='bookings')
    service = relationship('Services', back_populates='bookings')


class WalkInQueue(Base):
    __tablename__ = 'walk_in_queue'
    __table_args__ = (
        Index('idx_walk_in_queue_status', 'status'),
        Index('idx_walk_in_queue_barber_id', 'barber_id'),
    )

    # id is assigned in join order and is the FIFO key
    id = Column(Integer, primary_key=True, autoincrement=True)
    queue_id = Column(Text, nullable=False, unique=True)
    customer_name = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=False)
    barber_id = Column(ForeignKey('barbers.barber_id', ondelete='SET NULL'))
    status = Column(Text, nullable=False, server_default=text("'waiting'"))
    position = Column(Integer)
    estimated_wait_minutes = Column(Integer, nullable=False, server_default=text('0'))
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
    served_at = Column(Text)

    barber = relationship('Barbers', back_populates='queue_entries')


class CapacityOverrides(Base):
    __tablename__ = 'capacity_overrides'
    __table_args__ = (
        Index('idx_capacity_overrides_date', 'override_date'),
    )

    id = Column(Integer, primary_key=True)
    override_date = Column(Text, nullable=False)
    time_slot = Column(Text)  # NULL = whole day
    capacity = Column(Integer, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    reason = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
