"""
Utilities Package.

Modules:
    - ``console``: Rich-backed logging and output helpers.
"""
