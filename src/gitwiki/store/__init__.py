"""Revision store — every page mutation is a git commit.

Layout:
    ~/wiki/
    ├── Home                           # One file per page, file name = page name
    ├── About
    └── .git/                          # History: one commit per create/edit/destroy

The current snapshot is the tree of HEAD. Files in the working tree that are
not committed are never visible to readers.
"""
