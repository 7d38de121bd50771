# This file contains the record models for the HR portal
# All four collections are persisted together as one JSON blob (see storage.py)

from dataclasses import dataclass, field
from typing import List

ROLE_ADMIN = 'Admin'
ROLE_USER = 'User'
ROLES = (ROLE_ADMIN, ROLE_USER)

STATUS_PENDING = 'Pending'
STATUS_APPROVED = 'Approved'
STATUS_REJECTED = 'Rejected'


@dataclass
class Account:
    """Login account, keyed by email"""
    id: int
    first_name: str
    last_name: str
    email: str
    password: str
    role: str = ROLE_USER  # 'Admin' or 'User'
    verified: bool = False

    @property
    def full_name(self):
        return f'{self.first_name} {self.last_name}'

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def to_dict(self):
        return {
            'id': self.id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'email': self.email,
            'password': self.password,
            'role': self.role,
            'verified': self.verified,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            first_name=data.get('firstName', ''),
            last_name=data.get('lastName', ''),
            email=data['email'],
            password=data.get('password', ''),
            role=data.get('role', ROLE_USER),
            verified=bool(data.get('verified', False)),
        )


@dataclass
class Department:
    id: str
    name: str
    description: str = ''

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'description': self.description}

    @classmethod
    def from_dict(cls, data):
        return cls(id=str(data['id']), name=data.get('name', ''),
                   description=data.get('description', ''))


@dataclass
class Employee:
    """Employee record; email links to an Account by value only"""
    id: str
    email: str
    position: str
    department: str  # copy of a Department name
    hire_date: str

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'position': self.position,
            'department': self.department,
            'hireDate': self.hire_date,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data['id']),
            email=data.get('email', ''),
            position=data.get('position', ''),
            department=data.get('department', ''),
            hire_date=data.get('hireDate', ''),
        )


@dataclass
class RequestItem:
    name: str
    qty: int

    def to_dict(self):
        return {'name': self.name, 'qty': self.qty}

    @classmethod
    def from_dict(cls, data):
        return cls(name=data.get('name', ''), qty=int(data.get('qty', 1)))


@dataclass
class Request:
    """Requisition raised by an employee"""
    id: int
    date: str  # ISO timestamp of creation
    employee_email: str
    type: str
    items: List[RequestItem] = field(default_factory=list)
    status: str = STATUS_PENDING  # 'Pending', 'Approved' or 'Rejected'

    @property
    def is_pending(self):
        return self.status == STATUS_PENDING

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date,
            'employeeEmail': self.employee_email,
            'type': self.type,
            'items': [item.to_dict() for item in self.items],
            'status': self.status,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            date=data.get('date', ''),
            employee_email=data.get('employeeEmail', ''),
            type=data.get('type', ''),
            items=[RequestItem.from_dict(item) for item in data.get('items', [])],
            status=data.get('status', STATUS_PENDING),
        )


@dataclass
class Snapshot:
    """The four record collections, saved and loaded as one unit"""
    accounts: List[Account] = field(default_factory=list)
    departments: List[Department] = field(default_factory=list)
    employees: List[Employee] = field(default_factory=list)
    requests: List[Request] = field(default_factory=list)

    def find_account(self, email):
        for account in self.accounts:
            if account.email == email:
                return account
        return None

    def account_by_id(self, account_id):
        # ids arrive from forms as strings
        for account in self.accounts:
            if str(account.id) == str(account_id):
                return account
        return None

    def to_dict(self):
        return {
            'accounts': [a.to_dict() for a in self.accounts],
            'departments': [d.to_dict() for d in self.departments],
            'employees': [e.to_dict() for e in self.employees],
            'requests': [r.to_dict() for r in self.requests],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            accounts=[Account.from_dict(a) for a in data.get('accounts') or []],
            departments=[Department.from_dict(d) for d in data.get('departments') or []],
            employees=[Employee.from_dict(e) for e in data.get('employees') or []],
            requests=[Request.from_dict(r) for r in data.get('requests') or []],
        )
