# Refresh callbacks: each one re-reads the current records and returns the
# template context for its section.

from functools import partial

from models import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED
from router import Route
from services import requests_for

BADGE_CLASSES = {
    STATUS_PENDING: 'bg-warning text-dark',
    STATUS_APPROVED: 'bg-success',
    STATUS_REJECTED: 'bg-danger',
}


def render_profile(state):
    return {'user': state.auth.current_user}


def render_verify(state):
    return {'pending_email': state.session.get_pending_email()}


def render_employees(state):
    rows = []
    for employee in state.snapshot.employees:
        account = state.snapshot.find_account(employee.email)
        rows.append({
            'employee': employee,
            'name': account.full_name if account else employee.email,
        })
    return {
        'employees': rows,
        'department_names': [d.name for d in state.snapshot.departments],
    }


def render_departments(state):
    return {'departments': list(state.snapshot.departments)}


def render_accounts(state):
    return {'accounts': list(state.snapshot.accounts)}


def render_requests(state):
    user = state.auth.current_user
    rows = []
    for request in requests_for(state, user.email):
        rows.append({
            'request': request,
            'day': request.date[:10],
            'item_summary': ', '.join(f'{item.name} ({item.qty})' for item in request.items),
            'badge_class': BADGE_CLASSES.get(request.status, 'bg-secondary'),
        })
    return {'requests': rows}


def build_refreshers(state):
    """Bind every section's refresh callback to `state`"""
    return {
        Route.VERIFY: partial(render_verify, state),
        Route.PROFILE: partial(render_profile, state),
        Route.EMPLOYEES: partial(render_employees, state),
        Route.DEPARTMENTS: partial(render_departments, state),
        Route.ACCOUNTS: partial(render_accounts, state),
        Route.REQUESTS: partial(render_requests, state),
    }
