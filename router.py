import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 2


class Access(Enum):
    PUBLIC = 'public'
    AUTHENTICATED = 'authenticated'
    ADMIN = 'admin'


class Route(Enum):
    """Every navigable view: fragment, section id and required access"""
    HOME = ('#/', 'home-section', Access.PUBLIC)
    LOGIN = ('#/login', 'login-section', Access.PUBLIC)
    REGISTER = ('#/register', 'register-section', Access.PUBLIC)
    VERIFY = ('#/verify', 'verify-email-section', Access.PUBLIC)
    PROFILE = ('#/profile', 'profile-section', Access.AUTHENTICATED)
    REQUESTS = ('#/requests', 'requests-section', Access.AUTHENTICATED)
    EMPLOYEES = ('#/employees', 'employees-section', Access.ADMIN)
    ACCOUNTS = ('#/accounts', 'accounts-section', Access.ADMIN)
    DEPARTMENTS = ('#/departments', 'departments-section', Access.ADMIN)

    def __init__(self, fragment, section, access):
        self.fragment = fragment
        self.section = section
        self.access = access

    @property
    def requires_auth(self):
        return self.access in (Access.AUTHENTICATED, Access.ADMIN)

    @property
    def requires_admin(self):
        return self.access is Access.ADMIN

    @property
    def page(self):
        """Path segment for this route, '' for home"""
        return self.fragment[2:]

    @classmethod
    def resolve(cls, fragment):
        """Map '#/x', '/x' or 'x' to a route; anything unknown is HOME"""
        key = (fragment or '').strip()
        if key.startswith('#'):
            key = key[1:]
        key = '#/' + key.lstrip('/')
        for route in cls:
            if route.fragment == key:
                return route
        return cls.HOME


@dataclass
class Transition:
    """Outcome of one navigation event"""
    requested: str
    route: Route
    redirected_from: List[Route] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def redirected(self):
        return bool(self.redirected_from)


def access_redirect(route, auth):
    """Return where to send the user if `route` is not allowed, else None"""
    if route.requires_auth and not auth.is_authenticated:
        return Route.LOGIN
    if route.requires_admin and not auth.is_admin:
        return Route.HOME
    return None


class Router:
    """Resolves fragments to views and enforces the access policy.

    Refresh callbacks take no arguments; they are bound to the application
    state when the router is built (see views.build_refreshers) and return
    the template context for their section.
    """

    def __init__(self, auth, refreshers: Optional[Mapping[Route, Callable[[], Dict[str, Any]]]] = None):
        self.auth = auth
        self.refreshers = {}
        for route, callback in (refreshers or {}).items():
            self.register(route, callback)
        self.active = None

    def register(self, route, callback):
        if not isinstance(route, Route):
            raise TypeError(f'refresh callbacks are registered per Route, got {route!r}')
        self.refreshers[route] = callback

    def sections(self):
        return {route.section: route is self.active for route in Route}

    def navigate(self, fragment):
        return self._navigate(fragment, [], fragment)

    def _navigate(self, fragment, hops, requested):
        route = Route.resolve(fragment)

        target = access_redirect(route, self.auth)
        if target is not None:
            if len(hops) >= MAX_REDIRECTS:
                raise RuntimeError(f'redirect loop while routing {requested!r}')
            logger.debug('Redirecting %s to %s', route.fragment, target.fragment)
            return self._navigate(target.fragment, hops + [route], requested)

        self.active = route
        callback = self.refreshers.get(route)
        context = callback() if callback is not None else {}
        return Transition(requested=requested, route=route,
                          redirected_from=hops, context=context or {})
