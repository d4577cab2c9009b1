from app.domain.live.debug.debug_recorder import DebugRecorder, redact_headers


def test_latest_empty():
    assert DebugRecorder().latest() is None


def test_record_and_latest():
    recorder = DebugRecorder()

    recorder.record({"body": {"ticket": "a"}}, {"playerId": "1"})
    recorder.record({"body": {"ticket": "b"}}, {"playerId": "2"})

    assert recorder.latest() == {"request": {"body": {"ticket": "b"}}, "response": {"playerId": "2"}}
    assert len(recorder) == 2


def test_bounded_history_keeps_newest():
    recorder = DebugRecorder(capacity=3)

    for i in range(5):
        recorder.record({"n": i}, {})

    assert [entry["request"]["n"] for entry in recorder.history()] == [2, 3, 4]


def test_credential_headers_redacted():
    recorder = DebugRecorder()

    recorder.record({"headers": {"Authorization": "Bearer t", "x-auth-token": "t", "user-agent": "ua"}}, {})

    headers = recorder.latest()["request"]["headers"]
    assert headers == {"Authorization": "***", "x-auth-token": "***", "user-agent": "ua"}


def test_redact_headers_leaves_input_untouched():
    original = {"cookie": "c"}

    assert redact_headers(original) == {"cookie": "***"}
    assert original == {"cookie": "c"}
