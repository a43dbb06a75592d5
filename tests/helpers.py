from datetime import datetime, timezone

from streamrecord.riot import RiotApiError


PUUID = "P-TEST"
T0 = datetime(2024, 3, 1, 18, 0, tzinfo=timezone.utc)


def ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def lol_match(mid, start_ms, win=True, queue=420, puuid=PUUID):
    return {
        "metadata": {"matchId": mid, "participants": [puuid]},
        "info": {
            "gameStartTimestamp": start_ms,
            "queueId": queue,
            "participants": [
                {"puuid": puuid, "win": win},
                {"puuid": "OTHER", "win": not win},
            ],
        },
    }


def tft_match(mid, start_ms, placement, queue=1100, puuid=PUUID):
    others = [p for p in range(1, 9) if p != placement]
    parts = [{"puuid": puuid, "placement": placement}] + [{"puuid": f"O{p}", "placement": p} for p in others]
    return {
        "metadata": {"match_id": mid, "participants": [p["puuid"] for p in parts]},
        "info": {"game_datetime": start_ms, "queue_id": queue, "participants": parts},
    }


def entry(tier, rank, lp, queue_type="RANKED_SOLO_5x5"):
    return {"queueType": queue_type, "tier": tier, "rank": rank, "leaguePoints": lp}


def rate_limited():
    return RiotApiError("Rate limited", 429, rate_limited=True)


class FakeRiot:
    """In-memory stand-in for RiotClient; matches values may be exceptions to raise."""

    def __init__(self, matches=None, ids=None, entries=None, puuid=PUUID, account_error=None):
        self.matches = dict(matches or {})
        self.ids = list(ids) if ids is not None else list(self.matches)
        self.entries = list(entries or [])
        self.puuid = puuid
        self.account_error = account_error
        self.calls = []

    def get_account(self, game_name, tag_line, platform):
        self.calls.append(("account", game_name, tag_line, platform))
        if self.account_error is not None:
            raise self.account_error
        return {"puuid": self.puuid, "gameName": game_name, "tagLine": tag_line}

    def match_ids(self, game, puuid, platform, count=20, start_time=None):
        self.calls.append(("ids", game, start_time, count))
        return list(self.ids)

    def get_match(self, game, match_id, platform):
        self.calls.append(("match", game, match_id))
        m = self.matches[match_id]
        if isinstance(m, Exception):
            raise m
        return m

    def ranked_entries(self, game, puuid, platform):
        self.calls.append(("ranked", game))
        return list(self.entries)

    def fetched(self):
        return [c[2] for c in self.calls if c[0] == "match"]
