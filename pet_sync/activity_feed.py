"""GitHub activity feed: a user's public events, normalized for scoring."""

from datetime import datetime, timedelta

import requests
from github import Auth, Github, GithubException

from .config import get_fallback_token, get_feed_timeout
from .constants import (
    EVENT_PR_MERGED,
    EVENT_PR_OPENED,
    EVENT_PUSH,
    EVENT_REVIEW_SUBMITTED,
    FEED_LOOKBACK_HOURS,
    MAX_EVENTS_PER_FETCH,
)
from .errors import FeedUnavailable
from .time_utils import parse_iso_datetime, to_iso8601


def normalize_event_kind(event_type: str | None, payload: dict | None) -> str:
    """
    Collapse GitHub event types (plus payload action) into scoring kinds.

    Pull request events only count when opened or merged; other actions and
    unrecognized types keep their lowercased GitHub type and score zero.
    """
    payload = payload if isinstance(payload, dict) else {}
    if event_type == "PushEvent":
        return EVENT_PUSH
    if event_type == "PullRequestEvent":
        action = payload.get("action")
        pull_request = payload.get("pull_request") or {}
        if action == "opened":
            return EVENT_PR_OPENED
        if action == "closed" and pull_request.get("merged"):
            return EVENT_PR_MERGED
        return f"pull_request_{action or 'unknown'}"
    if event_type == "PullRequestReviewEvent":
        return EVENT_REVIEW_SUBMITTED
    return (event_type or "unknown").lower()


def normalize_event(event) -> dict | None:
    """Convert a PyGithub Event into the engine's plain event dict."""
    event_id = getattr(event, "id", None)
    if not event_id:
        return None

    repo = getattr(event, "repo", None)
    return {
        "id": str(event_id),
        "kind": normalize_event_kind(getattr(event, "type", None), getattr(event, "payload", None)),
        "created_at": to_iso8601(parse_iso_datetime(getattr(event, "created_at", None))),
        "repo": getattr(repo, "name", None) if repo is not None else None,
    }


class GithubActivityFeed:
    """
    Reads a user's public event stream through PyGithub.

    GitHub lists events newest first and can publish them minutes late, so
    the listing reaches back FEED_LOOKBACK_HOURS before the watermark and
    relies on the processed-event ledger to skip anything already scored.
    """

    def __init__(
        self,
        fallback_token: str | None = None,
        timeout: int | None = None,
        max_events: int = MAX_EVENTS_PER_FETCH,
    ) -> None:
        self.fallback_token = fallback_token if fallback_token is not None else get_fallback_token()
        self.timeout = timeout or get_feed_timeout()
        self.max_events = max_events

    def _list_events(self, username: str, token: str, watermark: datetime | None) -> list[dict]:
        cutoff = watermark - timedelta(hours=FEED_LOOKBACK_HOURS) if watermark else None
        events: list[dict] = []

        try:
            g = Github(auth=Auth.Token(token), timeout=self.timeout)
            for raw_event in g.get_user(username).get_public_events():
                event = normalize_event(raw_event)
                if event is None:
                    continue
                created_at = parse_iso_datetime(event["created_at"])
                if cutoff is not None and created_at is not None and created_at < cutoff:
                    break
                events.append(event)
                if len(events) >= self.max_events:
                    break
        except (GithubException, requests.exceptions.RequestException) as e:
            raise FeedUnavailable(f"GitHub events for {username} unavailable: {e}") from e

        # Oldest first so batches fold in chronological order.
        events.reverse()
        return events

    def fetch_events_since(
        self,
        username: str,
        credential: str | None,
        watermark: datetime | None,
    ) -> tuple[list[dict], str | None]:
        """Return (events, error); errors degrade to an empty event list."""
        token = credential or self.fallback_token
        if not username:
            return [], "User has no GitHub username"
        if not token:
            print("    Warning: no GitHub token available")
            return [], "No GitHub token available"

        try:
            events = self._list_events(username, token, watermark)
        except FeedUnavailable as e:
            print(f"    Warning: {e}")
            return [], str(e)

        print(f"    Feed returned {len(events)} events for {username}")
        return events, None
