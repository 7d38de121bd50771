import logging

from werkzeug.security import generate_password_hash, check_password_hash

from errors import InvalidCredentials, NotVerified

logger = logging.getLogger(__name__)


def make_password(password, hashed=False):
    """Value stored in Account.password"""
    if hashed:
        return generate_password_hash(password)
    return password


def password_matches(stored, supplied, hashed=False):
    if hashed:
        return check_password_hash(stored, supplied)
    return stored == supplied


class AuthContext:
    """Holds the logged-in account for the lifetime of one request.

    Only the token (the account email) is persisted, in the session store.
    The account itself is looked up again in the loaded snapshot every time
    the session is resolved.
    """

    def __init__(self, snapshot, session_store, hash_passwords=False):
        self.snapshot = snapshot
        self.session_store = session_store
        self.hash_passwords = hash_passwords
        self.current_user = None

    @property
    def is_authenticated(self):
        return self.current_user is not None

    @property
    def is_admin(self):
        return self.is_authenticated and self.current_user.is_admin

    def resolve_session(self):
        token = self.session_store.get_token()
        if not token:
            return None
        account = self.snapshot.find_account(token)
        if account is None:
            logger.info('Discarding stale session token')
            self.session_store.clear_token()
            self.current_user = None
            return None
        self.current_user = account
        return account

    def login(self, email, password):
        """Authenticate by exact email and password match"""
        account = None
        for candidate in self.snapshot.accounts:
            if candidate.email == email and password_matches(
                    candidate.password, password, self.hash_passwords):
                account = candidate
                break

        if account is None:
            logger.warning('Failed login for %s', email)
            raise InvalidCredentials()
        if not account.verified:
            logger.warning('Login refused for unverified account %s', email)
            raise NotVerified()

        self.current_user = account
        self.session_store.set_token(account.email)
        logger.info('User %s logged in', email)
        return account

    def logout(self):
        if self.current_user is not None:
            logger.info('User %s logged out', self.current_user.email)
        self.current_user = None
        self.session_store.clear_token()
