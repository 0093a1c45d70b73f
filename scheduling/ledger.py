from datetime import datetime

from models.booking import Booking, BOOKING_CANCELLED
from models.slot import Slot, SLOT_AVAILABLE, SLOT_BOOKED
from scheduling.errors import BookingNotFound, NotAuthorized, OverlapConflict, SlotUnavailable
from scheduling.grid import retime_slot
from scheduling.schemas import BookingDetails
from scheduling.time_range import TimeRange


def _apply_details(booking: Booking, details: BookingDetails):
    booking.customer_name = details.customer_name
    booking.phone = details.phone
    booking.email = details.email
    booking.online_price = details.online_price
    booking.cash_price = details.cash_price
    booking.add_on_description = details.add_on_description
    booking.add_on_price = details.add_on_price


class BookingLedger:
    """
    Owns the booking records and the only legal slot transitions:

        AVAILABLE --create--> BOOKED
        BOOKED --edit--> BOOKED (same or another slot of the same grid)
        BOOKED --cancel--> AVAILABLE

    Methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, session, clock=datetime.utcnow):
        self.session = session
        self.clock = clock

    def get(self, booking_id: int) -> Booking:
        booking = self.session.get(Booking, booking_id)
        if booking is None:
            raise BookingNotFound()
        return booking

    def get_active(self, booking_id: int) -> Booking:
        booking = self.get(booking_id)
        if not booking.is_active:
            raise BookingNotFound("Booking is already cancelled")
        return booking

    def create(self, slot: Slot, details: BookingDetails) -> Booking:
        if slot.state != SLOT_AVAILABLE:
            raise SlotUnavailable(slot_id=slot.id)

        # Compare-and-set so a writer in another process cannot claim the same slot
        claimed = (
            self.session.query(Slot)
            .filter(Slot.id == slot.id, Slot.state == SLOT_AVAILABLE)
            .update({Slot.state: SLOT_BOOKED}, synchronize_session=False)
        )
        if claimed != 1:
            raise SlotUnavailable(slot_id=slot.id)

        booking = Booking(
            slot_id=slot.id,
            court_id=slot.court_id,
            booking_date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            created_at=self.clock(),
        )
        _apply_details(booking, details)
        self.session.add(booking)
        self.session.flush()

        slot.mark_booked(booking.id)
        self.session.flush()
        return booking

    def edit(self, booking_id: int, details: BookingDetails, new_range: TimeRange = None) -> Booking:
        booking = self.get_active(booking_id)
        _apply_details(booking, details)

        if new_range is not None and new_range != booking.time_range:
            self._reseat(booking, new_range)

        booking.updated_at = self.clock()
        self.session.flush()
        return booking

    def _reseat(self, booking: Booking, new_range: TimeRange):
        current = self.session.get(Slot, booking.slot_id)
        siblings = (
            self.session.query(Slot)
            .filter(Slot.court_id == booking.court_id, Slot.date == booking.booking_date, Slot.id != booking.slot_id)
            .all()
        )

        target = next((s for s in siblings if s.time_range == new_range), None)
        if target is not None:
            if target.is_booked:
                raise SlotUnavailable(f"Slot {new_range} is already booked", slot_id=target.id)
            current.mark_available()
            # free the old slot first, slots.booking_id is unique
            self.session.flush()
            target.mark_booked(booking.id)
            booking.slot_id = target.id
        else:
            try:
                retime_slot(self.session, current, new_range)
            except OverlapConflict as exc:
                raise SlotUnavailable(
                    f"{new_range} overlaps existing slot {exc.range_b}",
                    range=new_range.to_dict(),
                )

        booking.start_time = new_range.start
        booking.end_time = new_range.end

    def cancel(self, booking_id: int, authorization) -> Booking:
        if authorization is None or authorization.booking_id != booking_id:
            raise NotAuthorized()

        booking = self.get_active(booking_id)
        if booking.slot_id is not None:
            slot = self.session.get(Slot, booking.slot_id)
            if slot is not None and slot.booking_id == booking.id:
                slot.mark_available()

        booking.status = BOOKING_CANCELLED
        booking.cancelled_at = self.clock()
        booking.slot_id = None
        self.session.flush()
        return booking
