"""Merge automation-account pull requests when their branch is pushed."""

from __future__ import annotations
