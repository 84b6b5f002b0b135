"""
------------------------------------------------------------------------------
Project:        Subly
File:           core/__init__.py
Version:        1.0.0
Description:    Core package for Subly. Contains schema migrations, the
                iCloud document store, sync and the window lifecycle.
------------------------------------------------------------------------------
"""
