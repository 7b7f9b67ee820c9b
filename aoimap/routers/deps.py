"""Shared router dependencies."""

from fastapi import Request

from aoimap.session import AoiSession


def get_session(request: Request) -> AoiSession:
    """The session created by the application lifespan."""
    return request.app.state.session
