# Auth package init
"""
JunkHub Backend — Authentication and Authorization
====================================================

    credentials.py   password hashing, token issue/verify
    dependencies.py  identity resolution and the role gate (FastAPI deps)
    ownership.py     the shared "does this principal own this record" check
"""
