from .sinks import DurableLogSink, Sink, TranscriptSink
from .session import load_session, open_ledger

__all__ = ["DurableLogSink", "Sink", "TranscriptSink", "load_session", "open_ledger"]
