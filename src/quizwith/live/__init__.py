from .sessions import JoinResult, LiveSession, LiveSessionStore, LiveStatus

__all__ = ["JoinResult", "LiveSession", "LiveSessionStore", "LiveStatus"]
