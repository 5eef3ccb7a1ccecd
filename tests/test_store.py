import pytest
from starlette.datastructures import FormData

from cookieflash.schemas import (
    FlashContainer,
    FlashValue,
    decode_container,
    empty_container,
    encode_container,
)
from cookieflash.services.store import FlashStore


def _cookie_value(header: str) -> str:
    return header.split(";", 1)[0].split("=", 1)[1]


def _cookie(*values: FlashValue, valid: bool = True) -> str:
    return encode_container(FlashContainer(values=list(values), valid=valid))


def _next_request_store(store: FlashStore, make_request) -> FlashStore:
    """Commit ``store`` and build the store the following request would see."""
    assert store.commit()
    value = _cookie_value(store.outgoing_cookies[-1])
    return FlashStore(make_request(cookies={"flash": value}), "flash")


def test_no_cookie_reads_empty(make_request) -> None:
    store = FlashStore(make_request(), "flash")
    assert store.get() == FlashContainer(values=[], valid=False)
    assert store.get("anything") == []
    assert store.get_inputs() is None


def test_malformed_cookie_reads_empty(make_request) -> None:
    store = FlashStore(make_request(cookies={"flash": "%%%garbage"}), "flash")
    assert store.get() == empty_container()


def test_invalid_container_reads_empty(make_request) -> None:
    cookie = _cookie(FlashValue(key=["ext", "x"], value=1), valid=False)
    store = FlashStore(make_request(cookies={"flash": cookie}), "flash")
    assert store.get() == empty_container()
    assert store.get("x") == []


def test_cookie_is_consumed_from_request(make_request) -> None:
    cookie = _cookie(FlashValue(key=["ext", "x"], value=1))
    request = make_request(cookies={"theme": "dark", "flash": cookie, "lang": "en"})
    store = FlashStore(request, "flash")

    assert store.get("x") == [1]
    assert "flash" not in request.cookies
    assert dict(request.scope["headers"])[b"cookie"] == b"theme=dark; lang=en"
    # a consumed cookie is expired unless something is committed
    assert len(store.outgoing_cookies) == 1
    assert store.outgoing_cookies[0].startswith('flash=""')
    assert "Max-Age=0" in store.outgoing_cookies[0]


def test_only_cookie_header_is_dropped_when_emptied(make_request) -> None:
    request = make_request(cookies={"flash": _cookie()})
    FlashStore(request, "flash")
    assert b"cookie" not in dict(request.scope["headers"])


def test_flash_and_commit(make_request) -> None:
    store = FlashStore(make_request(), "flash")
    store.flash("error", "too short")

    # the flashed value belongs to the next request
    assert store.get("error") == []
    assert store.next == FlashContainer(
        values=[FlashValue(key=["ext", "error"], value="too short")], valid=True
    )

    assert store.commit() is True
    assert len(store.outgoing_cookies) == 1
    header = store.outgoing_cookies[0]
    assert "HttpOnly" in header and "Path=/" in header
    assert decode_container(_cookie_value(header)) == FlashContainer(
        values=[FlashValue(key=["ext", "error"], value="too short")], valid=True
    )

    following = _next_request_store(store, make_request)
    assert following.get("error") == ["too short"]


def test_flash_does_not_touch_current(make_request) -> None:
    cookie = _cookie(FlashValue(key=["ext", "a"], value="old"))
    store = FlashStore(make_request(cookies={"flash": cookie}), "flash")
    store.flash("a", "new")
    assert store.get("a") == ["old"]


def test_commit_without_flash_changes_nothing(make_request) -> None:
    store = FlashStore(make_request(), "flash")
    assert store.commit() is False
    assert store.outgoing_cookies == []

    cookie = _cookie(FlashValue(key=["ext", "a"], value=1))
    store = FlashStore(make_request(cookies={"flash": cookie}), "flash")
    before = store.outgoing_cookies
    assert store.commit() is False
    assert store.outgoing_cookies == before


def test_commit_replaces_the_expiry(make_request) -> None:
    cookie = _cookie(FlashValue(key=["ext", "a"], value=1))
    store = FlashStore(make_request(cookies={"flash": cookie}), "flash")
    store.flash("b", 2)
    store.commit()
    assert len(store.outgoing_cookies) == 1
    assert "Max-Age=0" not in store.outgoing_cookies[0]


def test_cookie_options_are_applied(make_request) -> None:
    store = FlashStore(
        make_request(), "notice", path="/app", secure=True, httponly=False, samesite="strict"
    )
    store.flash("a", 1)
    store.commit()
    header = store.outgoing_cookies[0]
    assert header.startswith("notice=")
    assert "Path=/app" in header
    assert "Secure" in header
    assert "HttpOnly" not in header
    assert "SameSite=strict" in header


def test_get_filters_by_prefix_in_order(make_request) -> None:
    cookie = _cookie(
        FlashValue(key=["ext", "form", "errors", "name"], value="required"),
        FlashValue(key=["ext", "notice"], value="hello"),
        FlashValue(key=["ext", "form", "errors"], value="check the form"),
        FlashValue(key=["ext", "formal"], value="nope"),
    )
    store = FlashStore(make_request(cookies={"flash": cookie}), "flash")

    assert store.get("form") == ["required", "check the form"]
    assert store.get(["form", "errors", "name"]) == ["required"]
    assert store.get([["notice"], ["form", "errors", "name"]]) == ["required", "hello"]
    assert store.get("missing") == []
    assert store.get().valid is True
    assert len(store.get().values) == 4


def test_get_never_sees_inputs(make_request) -> None:
    cookie = _cookie(FlashValue(key=["inputs"], value={"name": ["Alice"]}))
    store = FlashStore(make_request(cookies={"flash": cookie}), "flash")
    assert store.get("inputs") == []


def test_reflash_everything(make_request) -> None:
    values = [
        FlashValue(key=["ext", "a"], value=1),
        FlashValue(key=["inputs"], value={"name": ["x"]}),
    ]
    store = FlashStore(make_request(cookies={"flash": _cookie(*values)}), "flash")
    store.flash("b", 2)
    store.reflash()
    assert store.next.valid is True
    assert store.next.values == [FlashValue(key=["ext", "b"], value=2), *values]


def test_reflash_without_append_replaces_next(make_request) -> None:
    cookie = _cookie(FlashValue(key=["ext", "a"], value=1))
    store = FlashStore(make_request(cookies={"flash": cookie}), "flash")
    store.flash("b", 2)
    store.reflash(append=False)
    assert store.next.values == [FlashValue(key=["ext", "a"], value=1)]


def test_reflash_from_empty_current_still_commits(make_request) -> None:
    store = FlashStore(make_request(), "flash")
    store.reflash()
    assert store.next == FlashContainer(values=[], valid=True)
    assert store.commit() is True


@pytest.fixture
def mixed_store(make_request) -> FlashStore:
    cookie = _cookie(
        FlashValue(key=["ext", "form", "errors"], value="e1"),
        FlashValue(key=["ext", "form", "notes"], value="n1"),
        FlashValue(key=["ext", "notice"], value="hi"),
        FlashValue(key=["inputs"], value={"name": ["x"]}),
        FlashValue(key=["ext", "form", "errors", "name"], value="e2"),
    )
    return FlashStore(make_request(cookies={"flash": cookie}), "flash")


def _carried(store: FlashStore) -> list:
    return [item.value for item in store.next.values]


def test_reflash_pick(mixed_store: FlashStore) -> None:
    mixed_store.reflash(pick="form")
    assert _carried(mixed_store) == ["e1", "n1", "e2"]


def test_reflash_omit(mixed_store: FlashStore) -> None:
    mixed_store.reflash(omit=["form", "errors"])
    assert _carried(mixed_store) == ["n1", "hi", {"name": ["x"]}]


def test_reflash_pick_then_omit(mixed_store: FlashStore) -> None:
    mixed_store.reflash(pick=[["form"], ["notice"]], omit=[["form", "errors", "name"], ["notice"]])
    assert _carried(mixed_store) == ["e1", "n1"]


def test_reflash_empty_filters_mean_no_restriction(mixed_store: FlashStore) -> None:
    mixed_store.reflash(pick=[], omit=[])
    assert len(mixed_store.next.values) == 5


def test_reflash_pick_without_match(mixed_store: FlashStore) -> None:
    mixed_store.reflash(pick="unknown")
    assert mixed_store.next == FlashContainer(values=[], valid=True)


def test_reflash_pick_inputs_carries_only_the_snapshot(mixed_store: FlashStore) -> None:
    mixed_store.reflash(pick="inputs")
    assert mixed_store.next.values == [FlashValue(key=["inputs"], value={"name": ["x"]})]


def test_reflash_omit_inputs_drops_the_snapshot(mixed_store: FlashStore) -> None:
    mixed_store.reflash(omit="inputs")
    assert _carried(mixed_store) == ["e1", "n1", "hi", "e2"]


def test_reflash_pick_inputs_with_user_keys(mixed_store: FlashStore) -> None:
    mixed_store.reflash(pick=[["form", "errors"], ["inputs"]])
    assert _carried(mixed_store) == ["e1", {"name": ["x"]}, "e2"]


def test_reflash_nested_inputs_path_is_a_user_key(make_request) -> None:
    cookie = _cookie(
        FlashValue(key=["inputs"], value={"name": ["x"]}),
        FlashValue(key=["ext", "inputs", "hint"], value="h"),
    )
    store = FlashStore(make_request(cookies={"flash": cookie}), "flash")
    store.reflash(pick=["inputs", "hint"])
    assert _carried(store) == ["h"]


@pytest.mark.anyio
async def test_inputs_round_trip(make_request) -> None:
    request = make_request(
        body=b"name=Alice&tags=a&tags=b",
        content_type="application/x-www-form-urlencoded",
    )
    store = FlashStore(request, "flash")
    await store.flash_inputs()
    assert store.next.values == [FlashValue(key=["inputs"], value={"name": ["Alice"], "tags": ["a", "b"]})]

    inputs = _next_request_store(store, make_request).get_inputs()
    assert inputs is not None
    assert inputs.get("name") == "Alice"
    assert inputs.getlist("tags") == ["a", "b"]


@pytest.mark.anyio
async def test_flash_inputs_with_explicit_form(make_request) -> None:
    store = FlashStore(make_request(), "flash")
    await store.flash_inputs(FormData([("q", "search")]))
    assert _next_request_store(store, make_request).get_inputs() == FormData([("q", "search")])


@pytest.mark.anyio
async def test_first_inputs_snapshot_wins(make_request) -> None:
    store = FlashStore(make_request(), "flash")
    await store.flash_inputs(FormData([("n", "first")]))
    await store.flash_inputs(FormData([("n", "second")]))
    assert len(store.next.values) == 2

    inputs = _next_request_store(store, make_request).get_inputs()
    assert inputs is not None
    assert inputs.get("n") == "first"


@pytest.mark.anyio
async def test_user_inputs_key_does_not_clash_with_snapshot(make_request) -> None:
    store = FlashStore(make_request(), "flash")
    store.flash("inputs", "x")
    await store.flash_inputs(FormData([("name", "Alice")]))
    assert [item.key for item in store.next.values] == [["ext", "inputs"], ["inputs"]]

    following = _next_request_store(store, make_request)
    assert following.get("inputs") == ["x"]
    inputs = following.get_inputs()
    assert inputs is not None
    assert inputs.get("name") == "Alice"


def test_malformed_inputs_snapshot_reads_as_absent(make_request) -> None:
    cookie = _cookie(
        FlashValue(key=["inputs"], value={"name": "not-a-list"}),
        FlashValue(key=["ext", "a"], value=1),
    )
    store = FlashStore(make_request(cookies={"flash": cookie}), "flash")
    assert store.get_inputs() is None
    assert store.get("a") == [1]
