"""
Route dependencies for the signed-in user.

The app shell serves a single device, so "authenticated" means the
container's user session has a current user. Role checks raise the same
errors the services raise; the exception handlers in main.py turn them into
the JSON error envelope.
"""
import logging

from fastapi import Depends, Request

from scholarlink.container import AppContainer
from scholarlink.schemas.user import UserProfile, UserRole

logger = logging.getLogger(__name__)


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def require_signed_in(container: AppContainer = Depends(get_container)) -> UserProfile:
    return container.user_session.require_user()


def require_role(*roles: UserRole):
    """
    Dependency factory restricting a route to the given roles.

    Usage:
        @router.post("/{session_id}/accept", dependencies=[Depends(require_role(UserRole.TUTOR))])
    """

    def dependency(container: AppContainer = Depends(get_container)) -> UserProfile:
        return container.user_session.require_role(*roles)

    return dependency
