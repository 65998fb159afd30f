from rules_probe.identity import Principal
from rules_probe.record import ProbeRecord, build_probe_record, payload_mismatches


def test_payload_matches_rules_contract():
    rec = build_probe_record("g1", Principal(uid="u1"), now_ms=1234)
    assert rec.to_payload() == {
        "id": "g1",
        "from": "Current Location",
        "to": "Test Destination",
        "departureTime": "1718545678",
        "availableSeats": 4,
        "pricePerPerson": 0,
        "createdAt": 1234,
        "createdBy": "u1",
        "members": {"u1": {"name": "Test User", "joinedAt": 1234}},
    }


def test_departure_time_is_text():
    payload = build_probe_record("g1", Principal(uid="u1")).to_payload()
    assert isinstance(payload["departureTime"], str)
    assert isinstance(payload["createdAt"], int)


def test_record_parses_wire_names():
    payload = build_probe_record("g1", Principal(uid="u2"), now_ms=5).to_payload()
    rec = ProbeRecord.model_validate(payload)
    assert rec.created_by == "u2"
    assert rec.members["u2"].joined_at == 5


def test_payload_mismatches_ignores_extra_fields():
    written = {"a": 1, "b": "x"}
    assert payload_mismatches(written, {"a": 1, "b": "x", "c": 3}) == {}
    assert payload_mismatches(written, {"a": 2, "b": "x"}) == {"a": (1, 2)}
