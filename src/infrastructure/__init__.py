# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adapters to PostgreSQL, the Dramatiq broker and the notification inbox."""
