"""Verdicts for a Probe Run.

This module centralizes the outcome levels a run can end in. Keeping it in
the domain layer lets the pipeline, the reporter and the exporters share a
single source of truth without importing each other.
"""

from __future__ import annotations

from enum import Enum


class Verdict(str, Enum):
    """Overall judgment printed at the end of a run."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"
    ABORTED = "aborted"

    @classmethod
    def grade(cls, passed: bool, *, progress: bool = False) -> "Verdict":
        """`progress` marks a memory path that works in part, which lifts a miss to partial."""

        if passed:
            return cls.SUCCESS
        return cls.PARTIAL if progress else cls.FAILURE

    def label(self) -> str:
        """Human readable label for the console and reports."""

        return {
            Verdict.SUCCESS: "SUCCESS",
            Verdict.PARTIAL: "PARTIAL SUCCESS",
            Verdict.FAILURE: "FAILURE",
            Verdict.ABORTED: "ABORTED",
        }[self]

    def style(self) -> str:
        return {
            Verdict.SUCCESS: "green",
            Verdict.PARTIAL: "yellow",
            Verdict.FAILURE: "red",
            Verdict.ABORTED: "red",
        }[self]
