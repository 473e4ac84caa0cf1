from dashboard import api_client
from dashboard.state import is_active, poll_until_terminal


def _fetcher(statuses):
    calls = []

    def fetch(submission_id):
        calls.append(submission_id)
        return statuses[min(len(calls), len(statuses)) - 1]

    return fetch, calls


def test_stops_on_first_terminal_status():
    fetch, calls = _fetcher(["processing", "processing", "completed", "processing"])
    sleeps = []
    assert poll_until_terminal("sub-1", fetch=fetch, interval=3, timeout=60, sleep=sleeps.append) == "completed"
    assert len(calls) == 3
    assert sleeps == [3, 3]


def test_gives_up_after_iteration_cap():
    fetch, calls = _fetcher(["processing"])
    assert poll_until_terminal("sub-1", fetch=fetch, interval=3, timeout=9, sleep=lambda s: None) == "processing"
    assert len(calls) == 4


def test_unreachable_api_is_polled_until_cap():
    fetch, calls = _fetcher([None])
    assert poll_until_terminal("sub-1", fetch=fetch, interval=1, timeout=2, sleep=lambda s: None) is None
    assert len(calls) == 3


def test_is_active():
    assert is_active("pending") and is_active("processing")
    assert not is_active("completed") and not is_active("failed") and not is_active(None)


def test_fetch_status_swallows_transport_errors(monkeypatch):
    def _raise(*args, **kwargs):
        raise api_client.requests.ConnectionError("down")

    monkeypatch.setattr(api_client.requests, "get", _raise)
    assert api_client.fetch_status("sub-1") is None
    assert api_client.fetch_weak_topics("stu-1") == []
