"""Translate GitHub issue payloads into tracker issues."""

from __future__ import annotations

from collections.abc import Mapping

from binphotos.domain.ports.tracker import TrackerIssue

from .schema import IssuePayload


def parse_issue(payload: IssuePayload | Mapping[str, object]) -> TrackerIssue:
    model = payload if isinstance(payload, IssuePayload) else IssuePayload.model_validate(payload)
    return TrackerIssue(
        number=model.number,
        title=model.title,
        body=model.body,
        state=model.state,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
