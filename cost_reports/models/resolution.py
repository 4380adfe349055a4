"""
Result shapes of a resolved cost query.

Entry points map each shape onto their transport; the engine never builds
responses itself.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Ready:
    """A fresh report already exists."""

    artifact_url: str
    summary: str
    request_id: Optional[str] = None
    status: str = field(default='READY', init=False)


@dataclass(frozen=True)
class Generated:
    """A report was produced synchronously for this request."""

    artifact_url: str
    summary: str
    request_id: Optional[str] = None
    status: str = field(default='GENERATED', init=False)


@dataclass(frozen=True)
class Accepted:
    """The report will be produced asynchronously."""

    request_id: str
    need_email: bool
    status: str = field(default='ACCEPTED', init=False)


@dataclass(frozen=True)
class Failed:
    """A deferred report already ended in ERROR."""

    request_id: str
    message: str
    status: str = field(default='FAILED', init=False)


@dataclass(frozen=True)
class Scheduled:
    """A recurring report rule was created."""

    rule_name: str
    schedule_expression: str
    status: str = field(default='SCHEDULED', init=False)


@dataclass(frozen=True)
class IncidentReport:
    """Recent incident records."""

    message: str
    incidents: List[Dict[str, Any]]
    status: str = field(default='INCIDENTS', init=False)
