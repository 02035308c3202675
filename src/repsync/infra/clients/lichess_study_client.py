"""Lichess study client (adapter layer)."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime
from email.utils import parsedate_to_datetime

import berserk
import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from repsync.config import LichessSettings
from repsync.domain.study import RemoteStudyContent, RemoteStudyMetadata, UserAccount
from repsync.errors import RateLimitError, RemoteFetchError
from repsync.utils.logger import get_logger
from repsync.utils.now import Now

logger = get_logger(__name__)

HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_SERVER_ERROR = 500
_NDJSON = "application/x-ndjson"


class LichessStudyMetadata(BaseModel):
    """One line of the ``/api/study/by/{username}`` listing."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    name: str
    updated_at: int = Field(alias="updatedAt")

    def to_remote(self) -> RemoteStudyMetadata:
        return RemoteStudyMetadata(
            remote_id=self.id,
            name=self.name,
            last_modified=Now.from_milliseconds(self.updated_at),
        )


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (RateLimitError, requests.ConnectionError, requests.Timeout)):
        return True
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    return isinstance(status_code, int) and status_code >= HTTP_STATUS_SERVER_ERROR


def _raise_for_status(response: requests.Response) -> None:
    if response.status_code == HTTP_STATUS_TOO_MANY_REQUESTS:
        raise RateLimitError("Lichess rate limit exceeded", response=response)
    response.raise_for_status()


def parse_study_metadata(body: str) -> list[RemoteStudyMetadata]:
    """Parse an ndjson study listing, skipping blank or malformed lines."""
    studies: list[RemoteStudyMetadata] = []
    for line in body.splitlines():
        if not line.strip():
            continue
        try:
            studies.append(LichessStudyMetadata.model_validate(json.loads(line)).to_remote())
        except (json.JSONDecodeError, ValidationError):
            logger.warning("Ignoring malformed study metadata line: %s", line[:200])
    return studies


def parse_last_modified(value: str | None) -> datetime | None:
    """Return the ``Last-Modified`` header as a UTC datetime, or None."""
    if not value:
        return None
    try:
        return Now.to_utc(parsedate_to_datetime(value))
    except (TypeError, ValueError):
        logger.warning("Unparseable Last-Modified header: %s", value)
        return None


def build_session(token: str | None) -> requests.Session:
    """Return a session authenticated with the user's OAuth token when present."""
    if token:
        return berserk.TokenSession(token)
    return requests.Session()


class LichessStudyClient:
    """Read a user's studies from Lichess."""

    def __init__(
        self,
        settings: LichessSettings,
        session_factory: Callable[[str | None], requests.Session] = build_session,
        retry_wait: wait_base | None = None,
    ) -> None:
        self.settings = settings
        self._session_factory = session_factory
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

    def fetch_studies_metadata(self, user: UserAccount) -> list[RemoteStudyMetadata]:
        """Return metadata for every study of the user.

        Raises:
            RemoteFetchError: When Lichess cannot be reached after retries.
        """
        url = self.settings.study_metadata_url(user.lichess_username)
        response = self._get(url, user, accept=_NDJSON)
        studies = parse_study_metadata(response.text)
        logger.info("Fetched metadata for %s studies of %s", len(studies), user.lichess_username)
        return studies

    def fetch_study(self, remote_id: str, user: UserAccount) -> RemoteStudyContent:
        """Return the PGN export of a study and its ``Last-Modified`` time."""
        response = self._get(self.settings.study_pgn_url(remote_id), user)
        return RemoteStudyContent(
            pgn=response.text,
            last_modified=parse_last_modified(response.headers.get("Last-Modified")),
        )

    def _get(self, url: str, user: UserAccount, accept: str | None = None) -> requests.Response:
        try:
            with self._session_factory(user.lichess_access_token) as session:
                for attempt in Retrying(
                    retry=retry_if_exception(_is_retryable),
                    stop=stop_after_attempt(max(self.settings.max_retries, 1)),
                    wait=self._retry_wait,
                    reraise=True,
                    before_sleep=before_sleep_log(logger, logging.WARNING),
                ):
                    with attempt:
                        return self._get_once(session, url, accept)
        except requests.RequestException as exc:
            raise RemoteFetchError(f"Fetching {url} from Lichess failed: {exc}") from exc
        raise RemoteFetchError(f"Fetching {url} from Lichess failed")

    def _get_once(
        self,
        session: requests.Session,
        url: str,
        accept: str | None,
    ) -> requests.Response:
        headers = {"Accept": accept} if accept else None
        logger.debug("GET %s", url)
        response = session.get(url, headers=headers, timeout=self.settings.timeout_s)
        _raise_for_status(response)
        return response
