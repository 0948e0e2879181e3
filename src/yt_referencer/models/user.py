"""Pydantic models for the signed-in user."""

from yt_referencer.models.base import CamelModel


class User(CamelModel):
    id: str
    name: str
    email: str
