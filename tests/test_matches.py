from streamrecord.games import LOL, TFT
from streamrecord.matches import MatchResult, aggregate, collect_matches, fold_binary, fold_placements
from streamrecord.riot import RiotApiError

from helpers import FakeRiot, lol_match, rate_limited, tft_match


def no_sleep(_s):
    pass


def test_filters_queue_and_time():
    riot = FakeRiot(
        {
            "m1": lol_match("m1", 100, win=True),
            "m2": lol_match("m2", 150, win=True, queue=400),
            "m3": lol_match("m3", 90, win=False),
        }
    )
    rec = aggregate(riot, LOL, "P-TEST", "na1", 95, sleep=no_sleep)
    assert (rec.wins, rec.losses) == (1, 0)


def test_rate_limit_on_second_keeps_first():
    riot = FakeRiot(
        {
            "m1": lol_match("m1", 1000, win=False),
            "m2": rate_limited(),
            "m3": lol_match("m3", 3000, win=True),
        }
    )
    got = collect_matches(riot, LOL, "P-TEST", "na1", 0, sleep=no_sleep)
    assert [m.match_id for m in got] == ["m1"]
    assert riot.fetched() == ["m1", "m2"]
    rec = fold_binary(got)
    assert (rec.wins, rec.losses) == (0, 1)


def test_other_errors_skip_single_match():
    riot = FakeRiot(
        {
            "m1": lol_match("m1", 1000),
            "m2": RiotApiError("boom", 500),
            "m3": ValueError("bad json"),
            "m4": lol_match("m4", 4000, win=False),
        }
    )
    got = collect_matches(riot, LOL, "P-TEST", "na1", 0, sleep=no_sleep)
    assert [m.match_id for m in got] == ["m1", "m4"]


def test_player_missing_is_discarded():
    riot = FakeRiot({"m1": lol_match("m1", 1000, puuid="SOMEONE-ELSE")})
    assert collect_matches(riot, LOL, "P-TEST", "na1", 0, sleep=no_sleep) == []


def test_sorted_oldest_first_regardless_of_provider_order():
    riot = FakeRiot(
        {
            "c": lol_match("c", 3000),
            "a": lol_match("a", 1000),
            "b": lol_match("b", 2000),
        }
    )
    got = collect_matches(riot, LOL, "P-TEST", "na1", 0, sleep=no_sleep)
    assert [m.match_id for m in got] == ["a", "b", "c"]


def test_list_request_is_bounded_and_in_seconds():
    ids = [f"m{i}" for i in range(25)]
    riot = FakeRiot({i: lol_match(i, 1_700_000_000_000 + n) for n, i in enumerate(ids)}, ids=ids)
    got = collect_matches(riot, LOL, "P-TEST", "na1", 1_700_000_000_000, sleep=no_sleep)
    assert ("ids", "lol", 1_700_000_000, 20) in riot.calls
    assert len(got) == 20


def test_delay_between_fetches():
    slept = []
    riot = FakeRiot({"a": lol_match("a", 1), "b": lol_match("b", 2), "c": lol_match("c", 3)})
    collect_matches(riot, LOL, "P-TEST", "na1", 0, sleep=slept.append)
    assert slept == [0.05, 0.05]


def test_tft_placements_fold():
    # (placement, start time) - provider order is shuffled on purpose
    games = [(4, 400), (1, 100), (8, 300), (3, 200), (5, 500), (2, 600)]
    riot = FakeRiot({f"t{t}": tft_match(f"t{t}", t, p) for p, t in games})
    rec = aggregate(riot, TFT, "P-TEST", "na1", 0, sleep=no_sleep)
    assert rec.wins == 4  # 1st, 2nd, 3rd, 4th
    assert rec.losses == 2
    assert rec.firsts == 1
    assert rec.placements == [2, 5, 4, 8, 3]


def test_tft_queue_filter():
    riot = FakeRiot({"t1": tft_match("t1", 100, 1, queue=1090), "t2": tft_match("t2", 200, 6)})
    rec = aggregate(riot, TFT, "P-TEST", "na1", 0, sleep=no_sleep)
    assert (rec.wins, rec.losses, rec.placements) == (0, 1, [6])


def test_configured_queues_override():
    riot = FakeRiot({"m1": lol_match("m1", 100, queue=440), "m2": lol_match("m2", 200)})
    flex_only = LOL.with_queues([440])
    got = collect_matches(riot, flex_only, "P-TEST", "na1", 0, sleep=no_sleep)
    assert [m.match_id for m in got] == ["m1"]


def test_fold_placements_small_lobby():
    # Double Up style lobby of 4: top 2 counts
    matches = [
        MatchResult("a", 1, 1100, placement=2, lobby_size=4),
        MatchResult("b", 2, 1100, placement=3, lobby_size=4),
    ]
    rec = fold_placements(matches)
    assert (rec.wins, rec.losses) == (1, 1)
