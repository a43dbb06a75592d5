from datetime import timedelta

from streamrecord.session import (
    CaptureState,
    SessionManager,
    SessionRecord,
    capture_key,
    iso,
    is_offline,
    session_key,
)
from streamrecord.store import Store

from helpers import T0


def save_prior(sessions, start, last_seen, **kw):
    rec = SessionRecord(game="lol", stream_start=iso(start), last_seen=iso(last_seen), **kw)
    sessions.save_session("Faker", "KR1", rec)
    return rec


def test_no_prior_record_is_new(sessions):
    req = iso(T0)
    res = sessions.resolve("lol", "Faker", "KR1", req)
    assert res.is_new is True
    assert res.effective_start == req
    assert res.prior is None


def test_restart_within_window_keeps_original_start(sessions):
    save_prior(sessions, T0, T0 + timedelta(minutes=30), wins=2, starting_lp=1450)
    res = sessions.resolve("lol", "Faker", "KR1", iso(T0 + timedelta(minutes=9)), now=T0 + timedelta(minutes=40))
    assert res.is_new is False
    assert res.effective_start == iso(T0)
    assert res.prior.starting_lp == 1450


def test_far_start_with_stale_activity_is_new(sessions):
    save_prior(sessions, T0 - timedelta(days=1), T0 - timedelta(hours=20), wins=3)
    req = iso(T0 + timedelta(hours=1))
    res = sessions.resolve("lol", "Faker", "KR1", req, now=T0 + timedelta(hours=1, minutes=5))
    assert res.is_new is True
    assert res.effective_start == req
    # prior is still handed back for the caller to inspect
    assert res.prior is not None and res.prior.wins == 3


def test_reconnect_with_recent_activity_continues(sessions):
    now = T0 + timedelta(hours=2)
    save_prior(sessions, T0, now - timedelta(minutes=4))
    # stream dropped and came back: declared start jumped forward by ~2h
    res = sessions.resolve("lol", "Faker", "KR1", iso(now - timedelta(minutes=1)), now=now)
    assert res.is_new is False
    assert res.effective_start == iso(T0)


def test_old_request_with_recent_activity_is_new(sessions):
    now = T0 + timedelta(hours=2)
    save_prior(sessions, T0, now - timedelta(minutes=4))
    # declared start is more than 10 min before the last query
    req = iso(now - timedelta(minutes=15))
    res = sessions.resolve("lol", "Faker", "KR1", req, now=now)
    assert res.is_new is True
    assert res.effective_start == req


def test_restart_exactly_at_window_edge_continues(sessions):
    save_prior(sessions, T0, T0 + timedelta(minutes=30))
    res = sessions.resolve("lol", "Faker", "KR1", iso(T0 + timedelta(minutes=10)), now=T0 + timedelta(hours=5))
    assert res.is_new is False
    assert res.effective_start == iso(T0)


def test_keys_are_per_game_and_case_insensitive(sessions, store):
    save_prior(sessions, T0, T0)
    assert store.get_json(session_key("lol", "faker", "kr1"))["streamStart"] == iso(T0)
    assert sessions.get_session("lol", "FAKER", "kr1") is not None
    assert sessions.get_session("tft", "Faker", "KR1") is None


def test_stored_payload_uses_camel_case(sessions, store):
    rec = sessions.new_session("tft", iso(T0), 1200)
    sessions.save_session("Faker", "KR1", rec)
    data = store.get_json(session_key("tft", "Faker", "KR1"))
    assert data["gameType"] == "tft"
    assert data["startingLp"] == 1200
    assert data["placements"] == []
    assert data["lpChange"] == 0
    assert SessionRecord.from_dict(data) == rec


def test_update_keeps_starting_lp_and_monotonic_last_seen(sessions):
    rec = SessionRecord(game="lol", stream_start=iso(T0), last_seen=iso(T0 + timedelta(minutes=30)), starting_lp=1450, lp_change=12)
    # clock went backwards: last_seen must not
    out = sessions.update_session(rec, 2, 1, None, now=T0 + timedelta(minutes=10))
    assert out.last_seen == iso(T0 + timedelta(minutes=30))
    assert out.starting_lp == 1450
    assert out.lp_change == 12
    assert (out.wins, out.losses) == (2, 1)
    later = sessions.update_session(out, 3, 1, 30, now=T0 + timedelta(minutes=45))
    assert later.last_seen == iso(T0 + timedelta(minutes=45))
    assert later.lp_change == 30


def test_counters_never_negative(sessions):
    rec = sessions.new_session("lol", iso(T0), None)
    out = sessions.update_session(rec, -1, -3, None)
    assert out.wins == 0 and out.losses == 0
    assert SessionRecord.from_dict({"streamStart": iso(T0), "wins": -2}).wins == 0


def test_captured_rating_matches_within_five_minutes(sessions):
    state = CaptureState(was_live=True, captured_lp=1450, captured_at=iso(T0), stream_started_at=iso(T0))
    sessions.save_capture_state("lol", "Faker", "KR1", state)
    assert sessions.captured_starting_rating("lol", "Faker", "KR1", iso(T0 + timedelta(minutes=4))) == 1450
    assert sessions.captured_starting_rating("lol", "Faker", "KR1", iso(T0 + timedelta(minutes=6))) is None
    assert sessions.captured_starting_rating("tft", "Faker", "KR1", iso(T0)) is None


def test_captured_zero_lp_is_a_value(sessions):
    sessions.save_capture_state("lol", "a", "b", CaptureState(True, 0, iso(T0), iso(T0)))
    assert sessions.captured_starting_rating("lol", "a", "b", iso(T0)) == 0


def test_cleared_capture_is_ignored(sessions, store):
    sessions.save_capture_state("lol", "a", "b", CaptureState(False, None, iso(T0), iso(T0)))
    assert store.get_json(capture_key("lol", "a", "b"))["wasLive"] is False
    assert sessions.captured_starting_rating("lol", "a", "b", iso(T0)) is None


def test_session_expires_with_ttl(tmp_path):
    clock = [1_000_000.0]
    st = Store(db_path=str(tmp_path / "ttl.db"), clock=lambda: clock[0])
    mgr = SessionManager(store=st, session_ttl_s=60, clock=lambda: T0)
    mgr.save_session("a", "b", mgr.new_session("lol", iso(T0), 100))
    assert mgr.get_session("lol", "a", "b") is not None
    clock[0] += 61
    assert mgr.get_session("lol", "a", "b") is None


def test_is_offline():
    assert is_offline(None)
    assert is_offline("")
    assert is_offline("   ")
    assert not is_offline(iso(T0))


def test_from_config_reads_ttls(store):
    mgr = SessionManager.from_config({"store": {"session_ttl_s": 10, "capture_ttl_s": 20}}, store)
    assert (mgr.session_ttl_s, mgr.capture_ttl_s) == (10, 20)
