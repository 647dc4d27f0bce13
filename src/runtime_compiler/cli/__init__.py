# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command line interface for the runtime compiler."""

from __future__ import annotations

from .app import app, run

__all__ = ["app", "run"]
