from dataclasses import dataclass

from auth_context import AuthContext
from models import Snapshot, ROLE_ADMIN
from router import Router
from storage import RecordStore, SessionStore
from views import build_refreshers


@dataclass
class AppState:
    """Everything one request works on: records, session and routing"""
    records: RecordStore
    snapshot: Snapshot
    session: SessionStore
    auth: AuthContext
    hash_passwords: bool = False
    registration_role: str = ROLE_ADMIN
    router: Router = None

    def save(self):
        self.records.save(self.snapshot)


def load_state(storage, session_mapping, hash_passwords=False, registration_role=ROLE_ADMIN):
    """Load records, resolve the session and build the router"""
    records = RecordStore(storage, hash_passwords=hash_passwords)
    snapshot = records.load()
    session_store = SessionStore(session_mapping)
    auth = AuthContext(snapshot, session_store, hash_passwords=hash_passwords)
    auth.resolve_session()

    state = AppState(records=records, snapshot=snapshot, session=session_store,
                     auth=auth, hash_passwords=hash_passwords,
                     registration_role=registration_role)
    state.router = Router(auth, build_refreshers(state))
    return state
