"""
Server modules for Alliance Map application.

This package contains FastAPI router modules for authentication, cities,
bear traps, levels, users, audit history, snapshots, import/export and pages.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""
