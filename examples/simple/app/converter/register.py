# convgen: generate
"""Registered conversion pairs. Run ``convgen examples/simple/app/converter``."""

from convgen import register

from app.domain import User
from app.handler import UserRequest

register(UserRequest, User)
