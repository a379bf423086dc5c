import logging
import re
from typing import Iterable, Optional


_BEARER = re.compile(r"(Bearer)\s+\S+", re.IGNORECASE)
_SECRET_KV = re.compile(r"(token|secret|password|key)=\S+", re.IGNORECASE)

LOG_FORMAT = "%(asctime)s %(levelname)s [tree %(tree_id)s] %(name)s: %(message)s"


class RunContextFilter(logging.Filter):
    """Stamp the tree under test on every record and mask credentials."""

    def __init__(self, tree_id: Optional[int] = None):
        super().__init__()
        self.tree_id = "-" if tree_id is None else tree_id

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "tree_id"):
            record.tree_id = self.tree_id
        msg = record.getMessage()
        masked = _SECRET_KV.sub(r"\1=***", _BEARER.sub(r"\1 ***", msg))
        if masked != msg:
            record.msg = masked
            record.args = None
        return True


def setup_logging(
    level: int = logging.INFO,
    tree_id: Optional[int] = None,
    loggers: Iterable[str] = ("logprobe_harness", "logprobe_sdk", "urllib3"),
) -> None:
    f = RunContextFilter(tree_id)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # Records from other libraries reach the root handlers too; they need tree_id.
    for handler in logging.getLogger().handlers:
        handler.addFilter(f)
    for name in loggers:
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.addFilter(f)
