"""
------------------------------------------------------------------------------
Project:        Subly
File:           gui/__init__.py
Version:        1.0.0
Description:    PyQt6 adapters: main window and system tray.
------------------------------------------------------------------------------
"""
