"""JSON/HTTP client for the log service.

The harness only talks to the `LogClient` protocol; `HttpLogClient` is the
production implementation. Any object with `requests`-style `get`/`post`
methods can stand in for the session, e.g. a FastAPI `TestClient`.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Protocol

import requests
from pydantic import ValidationError

from .errors import LogDeadlineExceeded, LogRequestRejected, LogServiceError, LogUnavailable
from .models import LeavesResponse, LogLeaf, ProofResponse, QueueLeafRequest, SignedLogRoot

log = logging.getLogger(__name__)

# Statuses that mean "try again later" rather than "no".
_TRANSIENT_STATUS = {408, 429}


class LogClient(Protocol):
    def get_latest_signed_log_root(self, tree_id: int, timeout: float) -> SignedLogRoot: ...

    def queue_leaf(self, tree_id: int, leaf: LogLeaf, timeout: float) -> None: ...

    def get_leaves_by_range(
        self, tree_id: int, start_index: int, count: int, timeout: float
    ) -> List[LogLeaf]: ...

    def get_inclusion_proof(
        self, tree_id: int, leaf_index: int, tree_size: int, timeout: float
    ) -> ProofResponse: ...

    def get_consistency_proof(
        self, tree_id: int, first_tree_size: int, second_tree_size: int, timeout: float
    ) -> ProofResponse: ...


class HttpLogClient:
    def __init__(self, base_url: str, session: Any = None, token: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.headers: Dict[str, str] = {"accept": "application/json"}
        if token:
            self.headers["authorization"] = f"Bearer {token}"

    def _url(self, tree_id: int, suffix: str) -> str:
        return f"{self.base_url}/v1/trees/{tree_id}/{suffix}"

    def _send(self, method: str, url: str, timeout: float, **kwargs) -> Any:
        call = getattr(self.session, method)
        log.debug("%s %s %s", method.upper(), url, kwargs.get("params", ""))
        try:
            resp = call(url, headers=self.headers, timeout=timeout, **kwargs)
        except requests.Timeout as e:
            raise LogDeadlineExceeded(f"{method.upper()} {url}: deadline of {timeout:.1f}s exceeded") from e
        except requests.ConnectionError as e:
            raise LogUnavailable(f"{method.upper()} {url}: {e}") from e
        except requests.RequestException as e:
            raise LogUnavailable(f"{method.upper()} {url}: {type(e).__name__}: {e}") from e

        status = resp.status_code
        if status >= 400:
            detail = _detail(resp)
            msg = f"{method.upper()} {url}: HTTP {status}: {detail}"
            if status >= 500 or status in _TRANSIENT_STATUS:
                raise LogUnavailable(msg, status)
            raise LogRequestRejected(msg, status)
        try:
            return resp.json()
        except ValueError as e:
            raise LogServiceError(f"{method.upper()} {url}: invalid JSON body", status) from e

    def get_latest_signed_log_root(self, tree_id: int, timeout: float) -> SignedLogRoot:
        body = self._send("get", self._url(tree_id, "roots:latest"), timeout)
        root = body.get("signed_log_root") if isinstance(body, dict) else None
        return _parse(SignedLogRoot, root)

    def queue_leaf(self, tree_id: int, leaf: LogLeaf, timeout: float) -> None:
        req = QueueLeafRequest(leaf=leaf)
        self._send("post", self._url(tree_id, "leaves"), timeout, json=req.model_dump())

    def get_leaves_by_range(
        self, tree_id: int, start_index: int, count: int, timeout: float
    ) -> List[LogLeaf]:
        body = self._send(
            "get",
            self._url(tree_id, "leaves:by_range"),
            timeout,
            params={"start_index": start_index, "count": count},
        )
        return _parse(LeavesResponse, body).leaves

    def get_inclusion_proof(
        self, tree_id: int, leaf_index: int, tree_size: int, timeout: float
    ) -> ProofResponse:
        body = self._send(
            "get",
            self._url(tree_id, f"leaves/{leaf_index}:inclusion_proof"),
            timeout,
            params={"tree_size": tree_size},
        )
        return _parse(ProofResponse, body)

    def get_consistency_proof(
        self, tree_id: int, first_tree_size: int, second_tree_size: int, timeout: float
    ) -> ProofResponse:
        body = self._send(
            "get",
            self._url(tree_id, "roots:consistency_proof"),
            timeout,
            params={
                "first_tree_size": first_tree_size,
                "second_tree_size": second_tree_size,
            },
        )
        return _parse(ProofResponse, body)


def _detail(resp: Any) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)[:200]


def _parse(model, body):
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise LogServiceError(f"malformed {model.__name__} response: {e}") from e
