from datetime import date, datetime, timedelta

from models.court_schedule import CourtSchedule
from models.slot import Slot, SLOT_AVAILABLE
from scheduling.errors import OverlapConflict, SlotBooked, SlotNotFound
from scheduling.time_range import TimeRange, find_overlap


class ScheduleGrid:
    """
    Read view of the slots of one court on one date, in chronological order.
    Mutations go through the module functions below, which keep the
    no-overlap invariant and never leave a half-applied grid behind.
    """

    def __init__(self, court_id: int, day: date, slots, is_custom: bool = False):
        self.court_id = court_id
        self.date = day
        self.slots = sorted(slots, key=lambda s: (s.start_time, s.end_time))
        self.is_custom = is_custom

    @property
    def ranges(self):
        return [s.time_range for s in self.slots]

    def slot_for(self, time_range: TimeRange):
        for slot in self.slots:
            if slot.time_range == time_range:
                return slot
        return None

    def booking_ids(self):
        return [s.booking_id for s in self.slots if s.booking_id is not None]

    def to_dict(self, bookings_by_id=None):
        bookings_by_id = bookings_by_id or {}
        return {
            "court_id": self.court_id,
            "date": self.date.isoformat(),
            "is_custom": self.is_custom,
            "slots": [s.to_dict(bookings_by_id.get(s.booking_id)) for s in self.slots],
        }

    def __len__(self):
        return len(self.slots)


def generate_default(court, day: date):
    """
    Cuts the court's opening hours into back-to-back slots of slot_minutes.
    A trailing piece shorter than a full slot is dropped.
    Returns [(label, TimeRange)]; the date does not change the template today.
    """
    hours = TimeRange(court.opening_time, court.closing_time)
    step = timedelta(minutes=court.slot_minutes)
    if step.total_seconds() <= 0:
        return []

    base = datetime.combine(day, hours.start)
    closing = datetime.combine(day, hours.end)
    template = []
    cursor = base
    while cursor + step <= closing:
        template.append((f"Slot {len(template) + 1}", TimeRange(cursor.time(), (cursor + step).time())))
        cursor += step
    return template


def _slots_query(session, court_id: int, day: date):
    return session.query(Slot).filter(Slot.court_id == court_id, Slot.date == day)


def _schedule(session, court_id: int, day: date):
    return session.query(CourtSchedule).filter_by(court_id=court_id, date=day).first()


def _relabel(slots):
    for position, slot in enumerate(sorted(slots, key=lambda s: (s.start_time, s.end_time)), start=1):
        slot.label = f"Slot {position}"


def _mark_custom(session, court_id: int, day: date):
    schedule = _schedule(session, court_id, day)
    if schedule is None:
        schedule = CourtSchedule(court_id=court_id, date=day, is_custom=True)
        session.add(schedule)
    schedule.is_custom = True
    return schedule


def load_grid(session, court_id: int, day: date):
    schedule = _schedule(session, court_id, day)
    if schedule is None:
        return None
    return ScheduleGrid(court_id, day, _slots_query(session, court_id, day).all(), schedule.is_custom)


def materialize_default(session, court, day: date) -> ScheduleGrid:
    session.add(CourtSchedule(court_id=court.id, date=day, is_custom=False))
    slots = [
        Slot(
            court_id=court.id,
            date=day,
            start_time=rng.start,
            end_time=rng.end,
            label=label,
            state=SLOT_AVAILABLE,
        )
        for label, rng in generate_default(court, day)
    ]
    session.add_all(slots)
    session.flush()
    return ScheduleGrid(court.id, day, slots, is_custom=False)


def apply_custom_slots(session, court_id: int, day: date, proposed) -> ScheduleGrid:
    """
    Replaces the whole grid with the proposed ranges.
    Every pair is checked before anything is touched. Booked slots survive
    only when their exact range is part of the proposal.
    """
    proposed = list(proposed)
    conflict = find_overlap(proposed)
    if conflict:
        raise OverlapConflict(*conflict)

    existing = _slots_query(session, court_id, day).all()
    wanted = set(proposed)
    kept = {}
    for slot in existing:
        if not slot.is_booked:
            continue
        if slot.time_range not in wanted:
            raise SlotBooked(
                f"Slot {slot.time_range} has a booking; cancel it before removing it from the schedule",
                slot_id=slot.id,
                booking_id=slot.booking_id,
            )
        kept[slot.time_range] = slot

    for slot in existing:
        if not slot.is_booked:
            session.delete(slot)
    # deletes must reach the database before re-inserting the same times
    session.flush()

    slots = list(kept.values())
    for rng in proposed:
        if rng in kept:
            continue
        slot = Slot(court_id=court_id, date=day, start_time=rng.start, end_time=rng.end, label="", state=SLOT_AVAILABLE)
        session.add(slot)
        slots.append(slot)

    _relabel(slots)
    _mark_custom(session, court_id, day)
    session.flush()
    return ScheduleGrid(court_id, day, slots, is_custom=True)


def get_slot(session, slot_id: int) -> Slot:
    slot = session.get(Slot, slot_id)
    if slot is None:
        raise SlotNotFound()
    return slot


def remove_slot(session, slot_id: int) -> ScheduleGrid:
    slot = get_slot(session, slot_id)
    if slot.is_booked:
        raise SlotBooked(slot_id=slot.id, booking_id=slot.booking_id)

    court_id, day = slot.court_id, slot.date
    session.delete(slot)
    session.flush()

    remaining = _slots_query(session, court_id, day).all()
    _relabel(remaining)
    _mark_custom(session, court_id, day)
    session.flush()
    return ScheduleGrid(court_id, day, remaining, is_custom=True)


def check_free(session, court_id: int, day: date, new_range: TimeRange, ignore_slot_id=None):
    """Raises OverlapConflict if new_range collides with any other slot of the grid."""
    for other in _slots_query(session, court_id, day).all():
        if other.id == ignore_slot_id:
            continue
        if other.time_range.overlaps(new_range):
            raise OverlapConflict(new_range, other.time_range)


def retime_slot(session, slot: Slot, new_range: TimeRange):
    check_free(session, slot.court_id, slot.date, new_range, ignore_slot_id=slot.id)
    slot.start_time = new_range.start
    slot.end_time = new_range.end
    _relabel(_slots_query(session, slot.court_id, slot.date).all())
    _mark_custom(session, slot.court_id, slot.date)


def edit_slot_time(session, slot_id: int, new_range: TimeRange) -> ScheduleGrid:
    slot = get_slot(session, slot_id)
    if slot.is_booked:
        raise SlotBooked(
            "Slot has a booking; edit the booking to move it",
            slot_id=slot.id,
            booking_id=slot.booking_id,
        )

    retime_slot(session, slot, new_range)
    session.flush()
    return load_grid(session, slot.court_id, slot.date)
