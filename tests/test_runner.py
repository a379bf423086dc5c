import pytest
import requests
from fastapi.testclient import TestClient

from fakelog import InMemoryLog, make_app, public_key_b64, signing_keypair
from logprobe_harness.errors import (
    ConfigurationError,
    IntegrationTimeout,
    ProtocolViolation,
    SequencingTimeout,
    ServiceError,
)
from logprobe_harness.merkle import InMemoryTree
from logprobe_harness.runner import run_log_integration
from logprobe_sdk.client import HttpLogClient
from logprobe_sdk.crypto import B64
from logprobe_sdk.errors import LogRequestRejected
from logprobe_sdk.logroot import LogRootV1
from logprobe_sdk.models import LogLeaf


def test_full_run_over_http(small_params, clock):
    log = InMemoryLog(sequencer_batch_size=small_params.sequencer_batch_size)
    params = small_params.model_copy(update={"log_public_key_b64": public_key_b64(log)})
    client = HttpLogClient("http://testserver", session=TestClient(make_app(log)))

    report = run_log_integration(client, params, seed=2024, clock=clock, sleep=clock.sleep)

    assert report.seed == 2024
    assert report.tree_size == 120
    assert report.root_hash == log.tree.root
    assert report.inclusion_proofs_checked == 34 + 12 + 8
    assert report.consistency_proofs_checked == 8
    assert clock.sleeps == [1.0] * 5


def test_run_with_duplicate_leaves(small_params, clock):
    params = small_params.model_copy(update={"unique_leaves": 30})
    log = InMemoryLog(sequencer_batch_size=20)
    report = run_log_integration(log, params, seed=1, clock=clock, sleep=clock.sleep)
    assert report.tree_size == 120
    assert len({leaf.leaf_value for leaf in log.leaves}) == 30


def test_transient_queue_failures_are_retried(small_params, clock):
    log = InMemoryLog(sequencer_batch_size=20)
    log.queue_failures = 3
    run_log_integration(log, small_params, seed=1, clock=clock, sleep=clock.sleep)
    assert log.calls.count("queue") == 123


def test_log_not_empty(small_params, clock):
    log = InMemoryLog()
    log.queue_leaf(7, LogLeaf.from_bytes(b"early"), 1.0)
    with pytest.raises(ProtocolViolation, match="expected an empty log but got tree size 1") as e:
        run_log_integration(log, small_params, clock=clock, sleep=clock.sleep)
    assert e.value.phase == "check log empty"
    assert str(e.value).startswith("check log empty: ")


def test_non_zero_start_leaf_fails_before_touching_the_log(small_params, clock):
    log = InMemoryLog(20)
    params = small_params.model_copy(update={"start_leaf": 5})
    with pytest.raises(ConfigurationError, match="start_leaf is not supported: 5") as e:
        run_log_integration(log, params, clock=clock, sleep=clock.sleep)
    assert e.value.phase == "configuration"
    assert log.calls == []
    assert clock.sleeps == []


def test_skipping_queue_and_wait_reads_existing_log(small_params, clock):
    log = InMemoryLog(sequencer_batch_size=200)
    run_log_integration(log, small_params, seed=9, clock=clock, sleep=clock.sleep)

    params = small_params.model_copy(
        update={"check_log_empty": False, "queue_leaves": False, "await_sequencing": False}
    )
    report = run_log_integration(log, params, seed=9, clock=clock, sleep=clock.sleep)
    assert report.root_hash == log.tree.root
    assert log.calls.count("queue") == 120


def test_sequencing_timeout_is_reported_as_timeout(small_params, clock):
    log = InMemoryLog(sequencer_batch_size=20, auto_sequence=False)
    with pytest.raises(SequencingTimeout) as e:
        run_log_integration(log, small_params, clock=clock, sleep=clock.sleep)
    assert isinstance(e.value, IntegrationTimeout)
    assert e.value.phase == "await sequencing"


def test_divergent_root_hash(small_params, clock):
    class Forked(InMemoryLog):
        def signed_root(self):
            root = super().signed_root()
            if self.published_size == 120:
                data = LogRootV1(120, b"\xee" * 32).to_bytes()
                return root.model_copy(update={"log_root_b64": B64(data)})
            return root

    with pytest.raises(ProtocolViolation, match="root hash mismatch at size 120: got eeee") as e:
        run_log_integration(Forked(20), small_params, clock=clock, sleep=clock.sleep)
    assert e.value.phase == "root hash check"


def test_unsigned_or_foreign_roots_rejected_when_key_configured(small_params, clock):
    _, other = signing_keypair()
    params = small_params.model_copy(update={"log_public_key_b64": B64(other)})
    with pytest.raises(ProtocolViolation, match="signature invalid") as e:
        run_log_integration(InMemoryLog(20), params, clock=clock, sleep=clock.sleep)
    assert e.value.phase == "check log empty"


def test_unexpected_client_error_becomes_service_error(small_params, clock):
    class NoRanges(InMemoryLog):
        def get_leaves_by_range(self, tree_id, start_index, count, timeout):
            raise LogRequestRejected("method not implemented", 501)

    with pytest.raises(ServiceError, match="method not implemented") as e:
        run_log_integration(NoRanges(20), small_params, clock=clock, sleep=clock.sleep)
    assert e.value.phase == "read entries"
    assert isinstance(e.value.__cause__, LogRequestRejected)


def test_broken_transport_is_reported_as_service_error(small_params, clock):
    class Broken:
        def get(self, url, **kwargs):
            raise requests.exceptions.ChunkedEncodingError("connection broken")

    client = HttpLogClient("http://log", session=Broken())
    with pytest.raises(ServiceError, match="ChunkedEncodingError: connection broken") as e:
        run_log_integration(client, small_params, clock=clock, sleep=clock.sleep)
    assert e.value.phase == "check log empty"


def test_oracle_is_injected(small_params, clock):
    built = []

    def factory():
        tree = InMemoryTree()
        built.append(tree)
        return tree

    run_log_integration(
        InMemoryLog(20), small_params, seed=3, oracle_factory=factory, clock=clock, sleep=clock.sleep
    )
    assert len(built) == 1
    assert built[0].size == 120

