"""
Static Analysis Package.

This package contains the host-independent minimality analysis over lowered trees.

Modules:
    - ``minimality``: The unsafe-block classifier.
    - ``traversal``: The walker that finds user-authored unsafe blocks.
"""
