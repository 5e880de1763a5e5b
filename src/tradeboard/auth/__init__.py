"""Authentication and authorization.

Learn: Users log in with email/password and receive a signed JWT whose
claims (userId, email, role, companyId) are enough to authorize every
request without another database read.

- jwt.py          → token issue/verify
- password.py     → bcrypt hashing
- dependencies.py → the bearer-token gate used by every protected router
- policy.py       → the company/role/ownership rules services call inline
"""
