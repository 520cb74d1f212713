"""Reachability classification and egress probe coordination."""

from regioncheck.probe.classifier import Classification, ProbeOutcome, classify, is_accessible
from regioncheck.probe.coordinator import (
    BatchFatalError,
    BatchReport,
    DomainVerdict,
    EgressProbe,
    ProbeCoordinator,
    SurveyResult,
)

__all__ = [
    "BatchFatalError",
    "BatchReport",
    "Classification",
    "DomainVerdict",
    "EgressProbe",
    "ProbeCoordinator",
    "ProbeOutcome",
    "SurveyResult",
    "classify",
    "is_accessible",
]
