from sqlalchemy import Column, Float, ForeignKey, Index, Integer, Text, UniqueConstraint, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Businesses(Base):
    __tablename__ = 'businesses'

    name = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    slug = Column(Text, unique=True)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    business_hours = relationship('BusinessHours', back_populates='business')
    slot_configuration = relationship('BusinessSlotConfigurations', uselist=False, back_populates='business')
    staff = relationship('Staff', back_populates='business')
    services = relationship('Services', back_populates='business')
    clients = relationship('Clients', back_populates='business')
    appointments = relationship('Appointments', back_populates='business')


class BusinessHours(Base):
    __tablename__ = 'business_hours'
    __table_args__ = (
        UniqueConstraint('business_id', 'day_of_week'),
    )

    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday … 6 = Saturday
    is_open = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    start_time = Column(Text)  # "HH:MM"
    end_time = Column(Text)
    lunch_break_start = Column(Text)
    lunch_break_end = Column(Text)

    business = relationship('Businesses', back_populates='business_hours')


class BusinessSlotConfigurations(Base):
    __tablename__ = 'business_slot_configurations'

    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False, unique=True)
    slot_duration_minutes = Column(Integer, nullable=False, server_default=text('30'))
    slots_per_day = Column(Integer, nullable=False, server_default=text('48'))
    start_hour = Column(Integer, nullable=False, server_default=text('0'))
    end_hour = Column(Integer, nullable=False, server_default=text('24'))
    working_start_slot = Column(Integer, nullable=False, server_default=text('18'))
    working_end_slot = Column(Integer, nullable=False, server_default=text('36'))
    time_zone = Column(Text, nullable=False, server_default=text("'UTC'"))
    id = Column(Integer, primary_key=True)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    business = relationship('Businesses', back_populates='slot_configuration')


class Staff(Base):
    __tablename__ = 'staff'

    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    email = Column(Text)
    role = Column(Text)

    business = relationship('Businesses', back_populates='staff')
    availability = relationship('StaffAvailability', uselist=False, back_populates='staff')
    unavailability = relationship('StaffUnavailability', back_populates='staff')
    appointments = relationship('Appointments', back_populates='staff')


class StaffAvailability(Base):
    __tablename__ = 'staff_availability'

    staff_id = Column(ForeignKey('staff.id', ondelete='CASCADE'), nullable=False, unique=True)
    schedule = Column(Text, nullable=False, server_default=text("'{}'"))
    id = Column(Integer, primary_key=True)

    staff = relationship('Staff', back_populates='availability')


class StaffUnavailability(Base):
    __tablename__ = 'staff_unavailability'

    staff_id = Column(ForeignKey('staff.id', ondelete='CASCADE'), nullable=False)
    start = Column(Text, nullable=False)  # "YYYY-MM-DD HH:MM:SS"
    end = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    reason = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    staff = relationship('Staff', back_populates='unavailability')


class Services(Base):
    __tablename__ = 'services'

    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    duration = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, server_default=text('0'))
    available_days = Column(Text, nullable=False, server_default=text("'[]'"))
    any_time_available = Column(Integer, nullable=False, server_default=text('1'))
    slot_model = Column(Text, nullable=False, server_default=text("'continuous'"))
    max_capacity = Column(Integer, nullable=False, server_default=text('1'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    start_time = Column(Text)
    end_time = Column(Text)
    slots = Column(Text)  # JSON: list of windows or {day_name: [windows]}
    description = Column(Text)

    business = relationship('Businesses', back_populates='services')
    appointments = relationship('Appointments', back_populates='service')


class Clients(Base):
    __tablename__ = 'clients'

    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    is_eligible = Column(Integer, nullable=False, server_default=text('1'))
    is_deleted = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    email = Column(Text)
    phone = Column(Text)

    business = relationship('Businesses', back_populates='clients')
    appointments = relationship('Appointments', back_populates='client')


class Appointments(Base):
    __tablename__ = 'appointments'
    __table_args__ = (
        Index('ix_appointments_staff_scheduled', 'staff_id', 'scheduled_for'),
    )

    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    client_id = Column(ForeignKey('clients.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    staff_id = Column(ForeignKey('staff.id', ondelete='CASCADE'), nullable=False)
    scheduled_for = Column(Text, nullable=False)  # "YYYY-MM-DD HH:MM:SS"
    duration = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'PENDING'"))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    notes = Column(Text)
    start_slot = Column(Integer)  # grid bookings only
    slots_used = Column(Integer)
    group_key = Column(Text)  # group-slot bookings only
    cancelled_at = Column(Text)
    cancel_reason = Column(Text)

    business = relationship('Businesses', back_populates='appointments')
    client = relationship('Clients', back_populates='appointments')
    service = relationship('Services', back_populates='appointments')
    staff = relationship('Staff', back_populates='appointments')


class StaffTimeClaims(Base):
    """
    Occupancy ledger: one row per staff-day unit held by an active booking.

    UNIQUE(staff_id, day, unit) is what makes a double-booking impossible
    even when two commits pass their pre-checks at the same moment.
    """
    __tablename__ = 'staff_time_claims'
    __table_args__ = (
        UniqueConstraint('staff_id', 'day', 'unit'),
    )

    staff_id = Column(ForeignKey('staff.id', ondelete='CASCADE'), nullable=False)
    day = Column(Text, nullable=False)  # "YYYY-MM-DD"
    unit = Column(Integer, nullable=False)
    id = Column(Integer, primary_key=True)
    appointment_id = Column(ForeignKey('appointments.id', ondelete='CASCADE'))
    group_key = Column(Text)


class GroupSeats(Base):
    __tablename__ = 'group_seats'
    __table_args__ = (
        UniqueConstraint('group_key', 'seat'),
    )

    group_key = Column(Text, nullable=False)
    seat = Column(Integer, nullable=False)
    appointment_id = Column(ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False, unique=True)
    id = Column(Integer, primary_key=True)
