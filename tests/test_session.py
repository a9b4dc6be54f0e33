import json

import pytest

from parley.errors import SessionDecodeError, SessionOpenError, SinkError
from parley.protocol import Turn
from parley.runtime.storage import DurableLogSink, TranscriptSink, load_session, open_ledger


def test_missing_session_file_is_empty(tmp_path):
    assert load_session(tmp_path / "nope.jsonl") == []


def test_durable_log_round_trip(tmp_path, conversation):
    path = tmp_path / "session.jsonl"
    with DurableLogSink(path) as sink:
        for turn in conversation:
            sink.observe(turn)

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == len(conversation)
    assert json.loads(lines[1]) == {"role": "user", "content": "Hello"}
    assert load_session(path) == conversation


def test_each_turn_is_flushed_before_observe_returns(tmp_path):
    path = tmp_path / "session.jsonl"
    sink = DurableLogSink(path)
    sink.observe(Turn.user("Hello"))
    # read through a separate handle while the sink is still open
    assert load_session(path) == [Turn.user("Hello")]
    sink.close()


def test_blank_lines_are_ignored(tmp_path):
    path = tmp_path / "session.jsonl"
    path.write_text('{"role": "user", "content": "a"}\n\n   \n{"role": "assistant", "content": "b"}\n')
    assert load_session(path) == [Turn.user("a"), Turn.assistant("b")]


def test_unknown_role_fails_the_load(tmp_path):
    path = tmp_path / "session.jsonl"
    path.write_text(
        '{"role": "user", "content": "a"}\n'
        '{"role": "moderator", "content": "b"}\n'
        '{"role": "assistant", "content": "c"}\n'
    )
    with pytest.raises(SessionDecodeError) as exc:
        load_session(path)
    assert exc.value.line_no == 2
    assert "session.jsonl:2" in str(exc.value)


def test_garbled_line_fails_the_load(tmp_path):
    path = tmp_path / "session.jsonl"
    path.write_text('{"role": "user", "content": "a"}\n{"role": "user", "cont\n')
    with pytest.raises(SessionDecodeError) as exc:
        load_session(path)
    assert exc.value.line_no == 2


def test_unopenable_log_is_fatal(tmp_path):
    with pytest.raises(SessionOpenError):
        DurableLogSink(tmp_path)


def test_write_after_close_is_a_sink_error(tmp_path):
    sink = DurableLogSink(tmp_path / "session.jsonl")
    sink.close()
    with pytest.raises(SinkError) as exc:
        sink.observe(Turn.user("late"))
    assert exc.value.sink == "session log"


def test_transcript_is_plain_content(tmp_path):
    path = tmp_path / "transcript.txt"
    with TranscriptSink(path) as sink:
        sink.observe(Turn.user("Hello"))
        sink.observe(Turn.assistant("Hi there"))
    assert path.read_text(encoding="utf-8") == "Hello\n\nHi there\n\n"


def test_open_ledger_replays_then_appends(tmp_path, conversation):
    session = tmp_path / "session.jsonl"
    ledger = open_ledger(session)
    for turn in conversation[:2]:
        ledger.push(turn)
    ledger.close()

    resumed = open_ledger(session)
    assert list(resumed.history()) == conversation[:2]
    resumed.push(conversation[2])
    resumed.close()

    assert load_session(session) == conversation[:3]


def test_open_ledger_with_transcript(tmp_path):
    session = tmp_path / "data" / "session.jsonl"
    transcript = tmp_path / "data" / "transcript.txt"
    ledger = open_ledger(session, transcript)
    assert [s.name for s in ledger.sinks] == ["session log", "transcript"]
    ledger.push(Turn.user("Hello"))
    ledger.close()
    assert load_session(session) == [Turn.user("Hello")]
    assert transcript.read_text(encoding="utf-8") == "Hello\n\n"


def test_open_ledger_without_files_is_transient():
    ledger = open_ledger()
    ledger.push(Turn.user("Hello"))
    assert ledger.sinks == ()
    assert len(ledger) == 1


def test_open_ledger_refuses_corrupt_session(tmp_path):
    session = tmp_path / "session.jsonl"
    session.write_text('{"role": "bot", "content": "x"}\n')
    with pytest.raises(SessionDecodeError):
        open_ledger(session)
    # nothing was appended to the corrupt log
    assert session.read_text() == '{"role": "bot", "content": "x"}\n'


def test_append_after_unterminated_last_line(tmp_path):
    session = tmp_path / "session.jsonl"
    session.write_text('{"role": "user", "content": "a"}', encoding="utf-8")

    ledger = open_ledger(session)
    assert list(ledger.history()) == [Turn.user("a")]
    ledger.push(Turn.assistant("b"))
    ledger.push(Turn.user("c"))
    ledger.close()

    assert load_session(session) == [Turn.user("a"), Turn.assistant("b"), Turn.user("c")]
    assert session.read_text(encoding="utf-8").count("\n") == 3


def test_new_log_has_no_leading_blank_line(tmp_path):
    session = tmp_path / "session.jsonl"
    session.touch()
    with DurableLogSink(session) as sink:
        sink.observe(Turn.user("a"))
    assert session.read_text(encoding="utf-8") == '{"role": "user", "content": "a"}\n'


def test_fsync_after_each_write(tmp_path, monkeypatch):
    synced = []
    monkeypatch.setattr("parley.runtime.storage.sinks.os.fsync", synced.append)
    ledger = open_ledger(tmp_path / "session.jsonl", tmp_path / "transcript.txt", fsync=True)
    ledger.push(Turn.user("a"))
    ledger.close()
    assert len(synced) == 2


def test_no_fsync_by_default(tmp_path, monkeypatch):
    synced = []
    monkeypatch.setattr("parley.runtime.storage.sinks.os.fsync", synced.append)
    with DurableLogSink(tmp_path / "session.jsonl") as sink:
        sink.observe(Turn.user("a"))
    assert synced == []
