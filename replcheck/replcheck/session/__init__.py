"""Session and connection interfaces consumed by the checker."""

from replcheck.session.base import NodeSession, SessionConnector

__all__ = ["NodeSession", "SessionConnector"]
