import base64
import logging
from typing import Any, Dict, Iterable, Optional
import requests
from gifrot.domain.errors import AccountClientError, RateLimitedError

class HttpAccountClient:
    """Client for the account profile endpoint (`PATCH /users/@me`).

    Images are sent as base64 data URIs. A 429 response, or any error body
    containing one of `rate_limit_markers`, raises RateLimitedError so the
    publisher's retry policy can engage.
    """

    def __init__(
        self,
        token: str,
        api_base: str,
        rate_limit_markers: Iterable[str] = (),
        timeout_seconds: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.rate_limit_markers = list(rate_limit_markers)
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": token,
            "Content-Type": "application/json",
        })
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _data_uri(data: bytes, mime: str = "image/gif") -> str:
        return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"

    def _is_rate_limited(self, status_code: int, body: str) -> bool:
        if status_code == 429:
            return True
        return any(marker in body for marker in self.rate_limit_markers)

    def _patch_profile(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.api_base}/users/@me"
        fields = ",".join(payload)
        try:
            resp = self.session.patch(url, json=payload, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise AccountClientError(f"Request to {url} failed: {e}") from e

        if resp.ok:
            self.logger.debug(f"ACCOUNT_PATCH: fields={fields} status={resp.status_code}")
            try:
                return resp.json()
            except ValueError:
                return {}

        body = resp.text or ""
        if self._is_rate_limited(resp.status_code, body):
            retry_after = 0.0
            try:
                retry_after = float(resp.json().get("retry_after", 0.0))
            except (ValueError, AttributeError):
                pass
            raise RateLimitedError(
                f"Rate limited updating {fields}: {body[:200]}",
                status_code=resp.status_code,
                retry_after=retry_after,
            )
        raise AccountClientError(
            f"Updating {fields} failed with HTTP {resp.status_code}: {body[:200]}",
            status_code=resp.status_code,
        )

    def set_avatar(self, data: bytes):
        self._patch_profile({"avatar": self._data_uri(data)})

    def set_banner(self, data: bytes):
        self._patch_profile({"banner": self._data_uri(data)})

    def set_display_name(self, name: str):
        self._patch_profile({"global_name": name})
