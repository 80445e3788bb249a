"""
Alliance Map application.

A FastAPI-powered coordination board for an alliance: member cities and
shared bear traps on a persistent grid, with role-gated editing and an
audit log.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""
