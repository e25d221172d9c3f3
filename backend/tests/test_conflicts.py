from datetime import date, datetime

from app.services.licences.conflicts import check_existing, days_until, find_blocking_conflict, latest_covering_permit

NOW = datetime(2026, 1, 10, 0, 0)


def _permit(factory, owner, valid_until, state="SP", permit="AET-SP-1", status="active", **plates):
    licence = factory.licence(owner, states=(state,), plate="ZZZ9Z99")
    plates.setdefault("tractor_plate", "ABC1D23")
    return factory.issued(licence, state, permit, valid_until, status=status, **plates)


def test_days_until_rounds_partial_days_up():
    assert days_until(date(2026, 1, 11), datetime(2026, 1, 10, 0, 0)) == 1
    assert days_until(date(2026, 1, 11), datetime(2026, 1, 10, 23, 59)) == 1
    assert days_until(date(2026, 3, 12), datetime(2026, 1, 10, 9, 30)) == 61


def test_blocks_when_more_than_sixty_days_remain(db, factory, owner):
    _permit(factory, owner, date(2026, 3, 12))  # 61 dias

    conflict = find_blocking_conflict(db, "SP", ["ABC-1D23"], now=NOW)

    assert conflict is not None
    assert conflict.days_remaining == 61
    assert conflict.permit_number == "AET-SP-1"
    assert conflict.conflicting_plates == ["ABC1D23"]


def test_renewal_window_allows_sixty_days_or_less(db, factory, owner):
    _permit(factory, owner, date(2026, 3, 11))  # 60 dias

    assert find_blocking_conflict(db, "SP", ["ABC1D23"], now=NOW) is None
    info = latest_covering_permit(db, "SP", ["ABC1D23"], now=NOW)
    assert info is not None
    assert info.days_remaining == 60
    assert info.blocking is False


def test_only_tractor_and_trailer_plates_are_compared(db, factory, owner):
    _permit(
        factory,
        owner,
        date(2026, 12, 31),
        tractor_plate="TRC1A11",
        dolly_plate="DOL2B22",
        flatbed_plate="PRA3C33",
        trailer_plate="REB4D44",
    )

    assert find_blocking_conflict(db, "SP", ["DOL2B22", "PRA3C33", "REB4D44"], now=NOW) is None
    assert find_blocking_conflict(db, "SP", ["TRC1A11"], now=NOW) is not None


def test_second_trailer_match_blocks(db, factory, owner):
    _permit(factory, owner, date(2026, 12, 31), tractor_plate="TRC1A11", second_trailer_plate="CAR5E55")

    conflict = find_blocking_conflict(db, "SP", ["XYZ0000", "CAR5E55"], now=NOW)

    assert conflict.conflicting_plates == ["CAR5E55"]


def test_other_states_and_inactive_rows_do_not_block(db, factory, owner):
    _permit(factory, owner, date(2026, 12, 31), state="MG", permit="AET-MG-1")
    _permit(factory, owner, date(2026, 12, 31), permit="AET-SP-CANC", status="canceled")
    _permit(factory, owner, date(2025, 12, 31), permit="AET-SP-OLD")

    assert find_blocking_conflict(db, "SP", ["ABC1D23"], now=NOW) is None


def test_latest_validity_is_reported(db, factory, owner):
    _permit(factory, owner, date(2026, 6, 1), permit="AET-SP-A")
    _permit(factory, owner, date(2026, 11, 1), permit="AET-SP-B")

    conflict = find_blocking_conflict(db, "SP", ["ABC1D23"], now=NOW)

    assert conflict.permit_number == "AET-SP-B"


def test_check_existing_aggregates_per_state(db, factory, owner):
    _permit(factory, owner, date(2026, 12, 31), state="SP", permit="AET-SP-1")
    _permit(factory, owner, date(2026, 2, 1), state="PR", permit="AET-PR-1")

    found = check_existing(db, ["sp", "PR", "MG", "SP"], ["abc1d23"], now=NOW)

    assert [conflict.state for conflict in found] == ["SP"]
    assert check_existing(db, ["SP"], [], now=NOW) == []
