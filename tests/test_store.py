from streamrecord.store import SCHEMA_VERSION, Store


class Clock:
    def __init__(self, t=1_000.0):
        self.t = t

    def __call__(self):
        return self.t


def test_put_get_and_overwrite(store):
    assert store.get("missing") is None
    store.put("k", "v1")
    store.put("k", "v2")
    assert store.get("k") == "v2"
    assert store.count() == 1


def test_ttl_expiry_and_sweep(tmp_path):
    clock = Clock()
    st = Store(db_path=str(tmp_path / "ttl.db"), clock=clock)
    st.put("short", "a", ttl_s=60)
    st.put("long", "b", ttl_s=3600)
    st.put("forever", "c")
    clock.t += 61
    assert st.get("short") is None
    assert st.get("long") == "b"
    assert st.sweep() == 1
    clock.t += 10 ** 6
    assert st.get("forever") == "c"
    assert st.sweep() == 1
    assert st.count() == 1


def test_json_helpers(store):
    store.put_json("j", {"wins": 3, "placements": [1, 4]})
    assert store.get_json("j") == {"wins": 3, "placements": [1, 4]}
    assert store.get_json("nope") is None


def test_in_memory_store_keeps_schema():
    st = Store(db_path=":memory:")
    st.put("a", "1")
    assert st.get("a") == "1"
    assert st.get_meta("schema_version") == SCHEMA_VERSION


def test_delete(store):
    store.put("k", "v")
    store.delete("k")
    store.delete("never-there")
    assert store.get("k") is None
