"""Database models."""

from models.block import Block
from models.like import Like
from models.match import Match
from models.message import Message
from models.profile import Profile
from models.user import User

__all__ = [
    "User",
    "Profile",
    "Like",
    "Match",
    "Message",
    "Block",
]
