import os
import logging
from functools import wraps
from flask import Flask, render_template, request, redirect, url_for, flash, session, g

import services
from errors import PortalError, AuthError
from models import ROLE_ADMIN, ROLE_USER, ROLES
from router import Route, access_redirect
from state import load_state
from storage import create_storage

# Configure logging
logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'DEBUG').upper())
logger = logging.getLogger(__name__)

# Create Flask app
app = Flask(__name__)
app.secret_key = os.environ.get("SESSION_SECRET", "your-secret-key-change-this")

# Portal configuration
app.config['HASH_PASSWORDS'] = os.environ.get('HASH_PASSWORDS', '').strip().lower() in ('1', 'true', 'yes', 'on')
app.config['REGISTRATION_ROLE'] = os.environ.get('REGISTRATION_ROLE', ROLE_ADMIN)

# Records storage: PostgreSQL when DATABASE_URL is set, memory otherwise
app.config['STORAGE'] = create_storage(os.environ.get('DATABASE_URL'))


def go(route):
    """Redirect the browser to a route's page"""
    return redirect(url_for('show_page', page=route.page))


def fail(exc, route):
    """Report a portal error next to the form and return to it"""
    flash(str(exc), exc.category)
    return go(route)


def requires(route):
    """Apply the access policy of `route` to a form action"""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            target = access_redirect(route, g.state.auth)
            if target is Route.LOGIN:
                flash('Please login first', 'error')
                return go(target)
            if target is not None:
                flash('Unauthorized access', 'error')
                return go(target)
            return view(*args, **kwargs)
        return wrapped
    return decorator


@app.before_request
def load_portal_state():
    """Load records and resolve the session once per request"""
    session.permanent = True
    g.state = load_state(
        app.config['STORAGE'],
        session,
        hash_passwords=app.config['HASH_PASSWORDS'],
        registration_role=app.config['REGISTRATION_ROLE'],
    )


@app.context_processor
def inject_auth():
    state = g.get('state')
    return {
        'auth': state.auth if state else None,
        'Route': Route,
        'roles': ROLES,
    }


# Views ---------------------------------------------------------------

@app.route('/', defaults={'page': ''})
@app.route('/<page>')
def show_page(page):
    """Render the section bound to /<page>"""
    state = g.state
    transition = state.router.navigate(page)
    if transition.redirected:
        return go(transition.route)

    context = dict(transition.context)
    edit_id = request.args.get('edit')
    try:
        if edit_id and transition.route is Route.DEPARTMENTS:
            context['editing'] = services.department_for_edit(state, edit_id)
        elif edit_id and transition.route is Route.ACCOUNTS:
            context['editing'] = services.account_for_edit(state, edit_id)
    except PortalError as exc:
        return fail(exc, transition.route)

    return render_template('index.html', active=transition.route,
                           sections=state.router.sections(), **context)


# Authentication --------------------------------------------------------

@app.route('/auth/register', methods=['POST'])
def register():
    """User registration"""
    try:
        services.register(
            g.state,
            request.form.get('first_name', ''),
            request.form.get('last_name', ''),
            request.form.get('email', '').strip(),
            request.form.get('password', ''),
        )
    except PortalError as exc:
        return fail(exc, Route.REGISTER)

    flash('Registration successful! Please verify your email.', 'info')
    return go(Route.VERIFY)


@app.route('/auth/verify', methods=['POST'])
def verify():
    """Simulate clicking the link in a verification email"""
    try:
        services.simulate_verify(g.state)
    except PortalError as exc:
        return fail(exc, Route.VERIFY)

    flash('Email verified! You may now log in.', 'success')
    return go(Route.LOGIN)


@app.route('/auth/login', methods=['POST'])
def login():
    """User login"""
    try:
        g.state.auth.login(request.form.get('email', ''), request.form.get('password', ''))
    except AuthError as exc:
        return fail(exc, Route.LOGIN)
    return go(Route.PROFILE)


@app.route('/auth/logout', methods=['GET', 'POST'])
def logout():
    """User logout"""
    g.state.auth.logout()
    flash('You have been logged out', 'info')
    return go(Route.HOME)


# Employees -------------------------------------------------------------

@app.route('/employees/create', methods=['POST'])
@requires(Route.EMPLOYEES)
def create_employee():
    try:
        services.create_employee(
            g.state,
            request.form.get('employee_id', '').strip(),
            request.form.get('email', '').strip(),
            request.form.get('position', ''),
            request.form.get('department', ''),
            request.form.get('hire_date', ''),
        )
    except PortalError as exc:
        return fail(exc, Route.EMPLOYEES)
    return go(Route.EMPLOYEES)


@app.route('/employees/<employee_id>/delete', methods=['POST'])
@requires(Route.EMPLOYEES)
def delete_employee(employee_id):
    try:
        services.delete_employee(g.state, employee_id)
    except PortalError as exc:
        return fail(exc, Route.EMPLOYEES)
    return go(Route.EMPLOYEES)


# Departments -----------------------------------------------------------

@app.route('/departments/create', methods=['POST'])
@requires(Route.DEPARTMENTS)
def create_department():
    # the edit dialog posts here too; submitting always adds a department
    try:
        services.create_department(
            g.state,
            request.form.get('name', '').strip(),
            request.form.get('description', ''),
        )
    except PortalError as exc:
        return fail(exc, Route.DEPARTMENTS)
    return go(Route.DEPARTMENTS)


@app.route('/departments/<department_id>/delete', methods=['POST'])
@requires(Route.DEPARTMENTS)
def delete_department(department_id):
    try:
        services.delete_department(g.state, department_id)
    except PortalError as exc:
        return fail(exc, Route.DEPARTMENTS)
    return go(Route.DEPARTMENTS)


# Accounts --------------------------------------------------------------

@app.route('/accounts/save', methods=['POST'])
@requires(Route.ACCOUNTS)
def save_account():
    """Create an account, or update it when the form carries an id"""
    form = request.form
    fields = dict(
        first_name=form.get('first_name', ''),
        last_name=form.get('last_name', ''),
        email=form.get('email', '').strip(),
        password=form.get('password', ''),
        role=form.get('role', ROLE_USER),
        verified='verified' in form,
    )
    try:
        if form.get('account_id'):
            services.update_account(g.state, form['account_id'], **fields)
        else:
            services.create_account(g.state, **fields)
    except PortalError as exc:
        return fail(exc, Route.ACCOUNTS)
    return go(Route.ACCOUNTS)


@app.route('/accounts/<account_id>/delete', methods=['POST'])
@requires(Route.ACCOUNTS)
def delete_account(account_id):
    try:
        services.delete_account(g.state, account_id)
    except PortalError as exc:
        return fail(exc, Route.ACCOUNTS)
    return go(Route.ACCOUNTS)


@app.route('/accounts/<account_id>/reset-password', methods=['POST'])
@requires(Route.ACCOUNTS)
def reset_password(account_id):
    try:
        services.reset_password(g.state, account_id, request.form.get('new_password', ''))
    except PortalError as exc:
        return fail(exc, Route.ACCOUNTS)
    flash('Password updated.', 'success')
    return go(Route.ACCOUNTS)


# Requests --------------------------------------------------------------

@app.route('/requests/create', methods=['POST'])
@requires(Route.REQUESTS)
def create_request():
    try:
        items = services.parse_items(request.form.getlist('item_name'),
                                     request.form.getlist('item_qty'))
        services.create_request(g.state, request.form.get('type', ''), items)
    except PortalError as exc:
        return fail(exc, Route.REQUESTS)
    return go(Route.REQUESTS)


@app.route('/requests/<request_id>/delete', methods=['POST'])
@requires(Route.REQUESTS)
def delete_request(request_id):
    try:
        services.delete_request(g.state, request_id)
    except PortalError as exc:
        return fail(exc, Route.REQUESTS)
    return go(Route.REQUESTS)


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    app.run(debug=False, host='0.0.0.0', port=port)
