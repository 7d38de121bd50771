"""Record operations behind the portal forms.

Every operation validates its input first and only then mutates the
snapshot, finishing with a single save, so a failed check never leaves a
partial write behind.
"""

import logging
import time
from datetime import datetime, timezone

from auth_context import make_password, password_matches
from errors import NotFoundError, ValidationError
from models import (Account, Department, Employee, Request, RequestItem,
                    ROLES, ROLE_USER, STATUS_PENDING)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _timestamp_id(existing_ids):
    """Millisecond timestamp, bumped past any id already in use"""
    new_id = int(time.time() * 1000)
    taken = {str(i) for i in existing_ids}
    while str(new_id) in taken:
        new_id += 1
    return new_id


def _check_password(password):
    if len(password or '') < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')


def _require(**fields):
    for name, value in fields.items():
        if not (value or '').strip():
            raise ValidationError(f"{name.replace('_', ' ').capitalize()} is required.")


def _check_email_free(snapshot, email, exclude=None):
    for account in snapshot.accounts:
        if account.email == email and account is not exclude:
            raise ValidationError('Email already registered!')


# Registration and verification -------------------------------------

def register(state, first_name, last_name, email, password):
    """Create an unverified account and remember it for verification"""
    _require(email=email)
    _check_password(password)
    _check_email_free(state.snapshot, email)

    account = Account(
        id=_timestamp_id(a.id for a in state.snapshot.accounts),
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=make_password(password, state.hash_passwords),
        role=state.registration_role,
        verified=False,
    )
    state.snapshot.accounts.append(account)
    state.save()
    state.session.set_pending_email(email)
    logger.info('Registered account %s', email)
    return account


def simulate_verify(state):
    email = state.session.get_pending_email()
    if not email:
        raise ValidationError('No registration to verify.')
    account = state.snapshot.find_account(email)
    if account is None:
        raise NotFoundError('User not found.')
    account.verified = True
    state.save()
    state.session.clear_pending_email()
    logger.info('Verified account %s', email)
    return account


# Employees -------------------------------------------------------------

def create_employee(state, employee_id, email, position, department, hire_date):
    _require(employee_id=employee_id, email=email)
    if any(e.id == employee_id for e in state.snapshot.employees):
        raise ValidationError('Employee ID already exists!')
    employee = Employee(id=employee_id, email=email, position=position,
                        department=department, hire_date=hire_date)
    state.snapshot.employees.append(employee)
    state.save()
    logger.info('Created employee %s', employee_id)
    return employee


def delete_employee(state, employee_id):
    employees = state.snapshot.employees
    remaining = [e for e in employees if e.id != employee_id]
    if len(remaining) == len(employees):
        raise NotFoundError('Employee not found.')
    state.snapshot.employees = remaining
    state.save()
    logger.info('Deleted employee %s', employee_id)


# Departments -----------------------------------------------------------

def create_department(state, name, description):
    _require(name=name)
    department = Department(
        id=str(_timestamp_id(d.id for d in state.snapshot.departments)),
        name=name,
        description=description,
    )
    state.snapshot.departments.append(department)
    state.save()
    logger.info('Created department %s', name)
    return department


def department_for_edit(state, department_id):
    for department in state.snapshot.departments:
        if department.id == department_id:
            return department
    raise NotFoundError('Department not found.')


def delete_department(state, department_id):
    departments = state.snapshot.departments
    remaining = [d for d in departments if d.id != department_id]
    if len(remaining) == len(departments):
        raise NotFoundError('Department not found.')
    state.snapshot.departments = remaining
    state.save()
    logger.info('Deleted department %s', department_id)


# Accounts --------------------------------------------------------------

def _check_role(role):
    if role not in ROLES:
        raise ValidationError(f'Unknown role: {role}')


def create_account(state, first_name, last_name, email, password, role=ROLE_USER, verified=False):
    _require(email=email)
    _check_role(role)
    _check_password(password)
    _check_email_free(state.snapshot, email)

    account = Account(
        id=_timestamp_id(a.id for a in state.snapshot.accounts),
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=make_password(password, state.hash_passwords),
        role=role,
        verified=bool(verified),
    )
    state.snapshot.accounts.append(account)
    state.save()
    logger.info('Created account %s', email)
    return account


def account_for_edit(state, account_id):
    account = state.snapshot.account_by_id(account_id)
    if account is None:
        raise NotFoundError('Account not found.')
    return account


def update_account(state, account_id, first_name, last_name, email, password, role, verified):
    account = account_for_edit(state, account_id)
    _require(email=email)
    _check_role(role)
    _check_email_free(state.snapshot, email, exclude=account)
    # the edit form is pre-filled with the stored value
    password_changed = (bool(password) and password != account.password
                        and not password_matches(account.password, password, state.hash_passwords))
    if password_changed:
        _check_password(password)

    old_email = account.email
    account.first_name = first_name
    account.last_name = last_name
    account.email = email
    if password_changed:
        account.password = make_password(password, state.hash_passwords)
    account.role = role
    account.verified = bool(verified)
    state.save()

    if state.auth.current_user is account and old_email != email:
        state.session.set_token(email)
    logger.info('Updated account %s', email)
    return account


def delete_account(state, account_id):
    account = account_for_edit(state, account_id)
    if account is state.auth.current_user:
        raise ValidationError('You cannot delete your own account.')
    state.snapshot.accounts = [a for a in state.snapshot.accounts if a is not account]
    state.save()
    logger.info('Deleted account %s', account.email)


def reset_password(state, account_id, new_password):
    account = account_for_edit(state, account_id)
    if len(new_password or '') < MIN_PASSWORD_LENGTH:
        raise ValidationError('Password too short.')
    account.password = make_password(new_password, state.hash_passwords)
    state.save()
    logger.info('Password reset for %s', account.email)
    return account


# Requests --------------------------------------------------------------

def parse_items(names, quantities):
    """Pair form item rows, skipping rows without a name"""
    items = []
    for name, qty in zip(names, quantities):
        name = (name or '').strip()
        if not name:
            continue
        try:
            qty = int(qty)
        except (TypeError, ValueError):
            raise ValidationError(f'Invalid quantity for {name}.')
        if qty < 1:
            raise ValidationError(f'Quantity for {name} must be at least 1.')
        items.append(RequestItem(name=name, qty=qty))
    return items


def create_request(state, request_type, items):
    user = state.auth.current_user
    if user is None:
        raise ValidationError('Please log in first.')
    _require(type=request_type)
    if not items:
        raise ValidationError('Please add at least one item.')

    request = Request(
        id=_timestamp_id(r.id for r in state.snapshot.requests),
        date=datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
        employee_email=user.email,
        type=request_type,
        items=list(items),
        status=STATUS_PENDING,
    )
    state.snapshot.requests.append(request)
    state.save()
    logger.info('Request %s created by %s', request.id, user.email)
    return request


def requests_for(state, email):
    return [r for r in state.snapshot.requests if r.employee_email == email]


def delete_request(state, request_id):
    """Cancel one of the current user's pending requests"""
    user = state.auth.current_user
    owned = requests_for(state, user.email) if user else []
    request = next((r for r in owned if str(r.id) == str(request_id)), None)
    if request is None:
        raise NotFoundError('Request not found.')
    if not request.is_pending:
        raise ValidationError('Only pending requests can be cancelled.')
    state.snapshot.requests = [r for r in state.snapshot.requests if r is not request]
    state.save()
    logger.info('Request %s cancelled by %s', request_id, user.email)
