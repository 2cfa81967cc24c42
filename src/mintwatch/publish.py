"""
Two-phase social media publishing: upload media, wait for processing, post.

The wait policy is deliberately crude. After the upload the publisher waits
a fixed 30 seconds and checks the processing state once. If the media is
still pending it waits another 45 seconds and posts without checking again.
A failed state aborts the publish with the platform's reason.
"""

import io
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import requests
import tweepy

from .config import MEDIA_INITIAL_WAIT, MEDIA_RETRY_WAIT, TWITTER_KEYS, require
from .errors import PublishError

logger = logging.getLogger(__name__)


class MediaState(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Stage(Enum):
    CREATED = "created"
    MEDIA_UPLOADING = "media_uploading"
    MEDIA_PROCESSING = "media_processing"
    MEDIA_READY = "media_ready"
    POSTED = "posted"
    FAILED = "failed"


@dataclass
class ProcessingOutcome:
    state: MediaState
    reason: Optional[str] = None


@dataclass
class PublishState:
    """Transient state of one publish call."""

    status_text: str
    media: Optional[bytes] = None
    media_id: Optional[str] = None
    outcome: Optional[ProcessingOutcome] = None
    stage: Stage = Stage.CREATED


@dataclass
class PublishAck:
    post_id: Optional[str]
    media_id: Optional[str] = None


class FixedBackoffPoller:
    """Default wait/poll strategy: fixed waits, a single status query."""

    def __init__(
        self,
        sleep: Callable[[float], None] = time.sleep,
        initial_wait: float = MEDIA_INITIAL_WAIT,
        retry_wait: float = MEDIA_RETRY_WAIT,
    ):
        self.sleep = sleep
        self.initial_wait = initial_wait
        self.retry_wait = retry_wait

    def wait(self, duration: float) -> None:
        self.sleep(duration)

    def query_once(self, query: Callable[[], Optional[ProcessingOutcome]]) -> Optional[ProcessingOutcome]:
        return query()


class Publisher:
    """
    Publishes a status, optionally with one attached image.

    The client must provide upload_media(bytes, mime_type) -> media id,
    get_status(media id) -> ProcessingOutcome or None, and
    post(text, media id or None) -> post id.
    """

    def __init__(self, client, poller: Optional[FixedBackoffPoller] = None,
                 log: Optional[logging.Logger] = None):
        self.client = client
        self.poller = poller or FixedBackoffPoller()
        self.log = log or logger

    def publish(self, status_text: str, media: Optional[bytes] = None,
                mime_type: str = "image/png") -> PublishAck:
        state = PublishState(status_text=status_text, media=media)
        try:
            if media is not None:
                self._upload(state, mime_type)
                self._await_processing(state)
            return self._post(state)
        except PublishError as e:
            e.stage = e.stage or state.stage.value
            state.stage = Stage.FAILED
            self.log.error(f"Publish failed ({e.stage}): {e.reason}")
            raise
        except Exception as e:
            stage = state.stage.value
            state.stage = Stage.FAILED
            self.log.error(f"Publish failed ({stage}): {e}")
            raise PublishError(str(e) or type(e).__name__, stage=stage) from e

    def _upload(self, state: PublishState, mime_type: str) -> None:
        state.stage = Stage.MEDIA_UPLOADING
        self.log.info(f"Uploading media ({len(state.media)} bytes, {mime_type})")
        state.media_id = self.client.upload_media(state.media, mime_type)
        self.log.info(f"Media uploaded: {state.media_id}")

    def _await_processing(self, state: PublishState) -> None:
        state.stage = Stage.MEDIA_PROCESSING
        self.log.info("Media upload processing...")
        self.poller.wait(self.poller.initial_wait)

        state.outcome = self.poller.query_once(lambda: self.client.get_status(state.media_id))

        if state.outcome is None or state.outcome.state == MediaState.SUCCEEDED:
            self.log.info("Media successfully processed")
        elif state.outcome.state in (MediaState.PENDING, MediaState.IN_PROGRESS):
            self.log.info(f"Media still {state.outcome.state.value}, waiting {self.poller.retry_wait}s")
            self.poller.wait(self.poller.retry_wait)
        else:
            raise PublishError(state.outcome.reason or "media processing failed")

        state.stage = Stage.MEDIA_READY

    def _post(self, state: PublishState) -> PublishAck:
        post_id = self.client.post(state.status_text, state.media_id)
        state.stage = Stage.POSTED
        self.log.info(f"Status posted: {post_id}")
        return PublishAck(post_id=post_id, media_id=state.media_id)


# ---------------- TWITTER ----------------
_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/gif": "gif"}


def _outcome_from_processing_info(info: Optional[Dict[str, Any]]) -> Optional[ProcessingOutcome]:
    """Maps Twitter's processing_info to an outcome; None means nothing to wait for."""
    if not info:
        return None
    try:
        state = MediaState(info.get("state"))
    except ValueError:
        raise PublishError(f"Unknown media processing state: {info.get('state')}") from None
    reason = None
    if state == MediaState.FAILED:
        error = info.get("error") or {}
        reason = error.get("message") or error.get("name") or "media processing failed"
    return ProcessingOutcome(state=state, reason=reason)


class TwitterClient:
    """Twitter/X through tweepy: v1.1 media endpoints, v2 tweet creation."""

    def __init__(self, api: tweepy.API, client: tweepy.Client):
        self.api = api
        self.client = client

    @classmethod
    def from_config(cls, config: Dict[str, str]) -> "TwitterClient":
        con_key, con_secret, acc_key, acc_secret = (require(config, k) for k in TWITTER_KEYS)
        auth = tweepy.OAuth1UserHandler(con_key, con_secret, acc_key, acc_secret)
        client = tweepy.Client(
            consumer_key=con_key,
            consumer_secret=con_secret,
            access_token=acc_key,
            access_token_secret=acc_secret,
        )
        return cls(tweepy.API(auth), client)

    def upload_media(self, media: bytes, mime_type: str) -> str:
        filename = f"chart.{_EXTENSIONS.get(mime_type, 'bin')}"
        try:
            uploaded = self.api.chunked_upload(
                filename,
                file=io.BytesIO(media),
                file_type=mime_type,
                media_category="tweet_image",
                wait_for_async_finalize=False,
            )
        except (tweepy.TweepyException, requests.RequestException) as e:
            raise PublishError(f"Media upload failed: {e}", stage="media_uploading") from e
        return str(uploaded.media_id)

    def get_status(self, media_id: str) -> Optional[ProcessingOutcome]:
        try:
            status = self.api.get_media_upload_status(media_id)
        except (tweepy.TweepyException, requests.RequestException) as e:
            raise PublishError(f"Media status query failed: {e}", stage="media_processing") from e
        return _outcome_from_processing_info(getattr(status, "processing_info", None))

    def post(self, text: str, media_id: Optional[str] = None) -> str:
        try:
            response = self.client.create_tweet(
                text=text,
                media_ids=[media_id] if media_id else None,
            )
        except (tweepy.TweepyException, requests.RequestException) as e:
            raise PublishError(f"Tweet failed: {e}", stage="posting") from e
        return str(response.data["id"])
