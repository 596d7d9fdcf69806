"""
Redis Key Prefix Strategy (Single DB + Key Prefix Pattern)

All keys live in db=0 and are namespaced by prefix, which keeps the layout
compatible with Redis Cluster (db=0 only) and lets one connection pool serve
every feature.

Usage:
    from app.db.redis_db import RedisKeyPrefix

    key = RedisKeyPrefix.session_key(session_id)
    # -> "onecre:session:user:sess_abc123"
"""

from enum import Enum


class RedisKeyPrefix(str, Enum):
    """Redis key prefixes, one per concern.

    Key format:
        {prefix}:{entity_type}:{entity_id}

    Examples:
        onecre:session:user:sess_abc123
        onecre:session:oauth_state:3f9c...
    """

    SESSION_USER = "onecre:session:user"  # Active login session (String/JSON)
    SESSION_INDEX = "onecre:session:index"  # Session ids per user email (Set)
    OAUTH_STATE = "onecre:session:oauth_state"  # Pending OAuth handshake state

    @classmethod
    def session_key(cls, session_id: str) -> str:
        """Key holding one login session."""
        return f"{cls.SESSION_USER.value}:{session_id}"

    @classmethod
    def session_index_key(cls, email: str) -> str:
        """Key holding the set of session ids issued to one email."""
        return f"{cls.SESSION_INDEX.value}:{email.lower()}"

    @classmethod
    def oauth_state_key(cls, state: str) -> str:
        """Key holding a pending OAuth state value."""
        return f"{cls.OAUTH_STATE.value}:{state}"
