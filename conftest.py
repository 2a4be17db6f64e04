"""
Marks the repository root for pytest.

With the default ``prepend`` import mode pytest inserts the directory of each
``conftest.py`` into ``sys.path``, which makes ``example`` importable.
"""
