"""
JSON-RPC client contract tests

Exercises id allocation, response correlation and error layering against the
loopback transport.
"""
import threading

import pytest

from ovs_unixctl.adapters.loopback import LoopbackTransport
from ovs_unixctl.errors import (
    CommandError,
    ProtocolError,
    RpcTimeoutError,
    SerializeError,
    SocketError,
)
from ovs_unixctl.rpc.client import Client


def reply(result=None, error=None):
    """Handler answering every request with the given result/error"""
    def handler(request):
        return {"result": result, "error": error, "id": request["id"]}
    return handler


class FlakyTransport(LoopbackTransport):
    """Loopback transport refusing the first connection attempts"""

    def __init__(self, failures, handler=None):
        super().__init__(handler)
        self.failures = failures

    def connect(self):
        if self.failures:
            self.failures -= 1
            raise ConnectionRefusedError("connection refused")
        return super().connect()


@pytest.fixture
def transport():
    return LoopbackTransport(reply(result="pong"))


@pytest.fixture
def client(transport):
    with Client(transport) as client:
        yield client


def test_ping(client):
    response = client.call("ping")
    assert response.result == "pong"
    assert response.error is None
    assert response.id == 1


def test_request_on_the_wire(client, transport):
    client.call_params("vlog/set", ["unixctl:dbg"])
    assert transport.sent == [{"method": "vlog/set", "params": ["unixctl:dbg"], "id": 1}]


def test_ids_start_at_one_and_increase(client, transport):
    for _ in range(20):
        client.call("ping")
    assert [request["id"] for request in transport.sent] == list(range(1, 21))


def test_ids_advance_after_failures():
    transport = LoopbackTransport(reply(error="nope"))
    client = Client(transport)
    for _ in range(3):
        with pytest.raises(CommandError):
            client.call("bad")
    assert [request["id"] for request in transport.sent] == [1, 2, 3]


def test_connects_lazily_once(client, transport):
    assert not client.connected
    assert transport.connect_count == 0
    client.call("ping")
    client.call("ping")
    assert client.connected
    assert transport.connect_count == 1


def test_concurrent_id_allocation_has_no_duplicates(client):
    ids = []
    lock = threading.Lock()

    def worker():
        allocated = [client.build_request("ping").id for _ in range(250)]
        with lock:
            ids.extend(allocated)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(ids) == list(range(1, 2001))


def test_request_round_trip_through_loopback():
    client = Client(LoopbackTransport())
    request = client.build_request("dpctl/dump-flows", ["system@ovs-system", "-m"])
    response = client.send_request(request)
    assert response.result == request.to_dict()


class TestCorrelation:
    """Responses must answer the outstanding request"""

    def test_id_mismatch(self):
        client = Client(LoopbackTransport(lambda r: {"result": "late", "error": None, "id": r["id"] + 1}))
        with pytest.raises(ProtocolError, match="id mismatch"):
            client.send_request(client.build_request("ping"))

    def test_missing_id(self):
        client = Client(LoopbackTransport(lambda r: {"result": "x", "error": None}))
        with pytest.raises(ProtocolError, match="no id present"):
            client.call("ping")

    def test_null_id(self):
        client = Client(LoopbackTransport(lambda r: {"result": "x", "error": None, "id": None}))
        with pytest.raises(ProtocolError, match="no id present"):
            client.call("ping")

    def test_client_unusable_after_correlation_failure(self):
        answers = iter([7, 2])
        transport = LoopbackTransport(lambda r: {"result": "x", "error": None, "id": next(answers)})
        client = Client(transport)
        with pytest.raises(ProtocolError, match="id mismatch"):
            client.call("ping")
        with pytest.raises(ProtocolError, match="unusable") as exc_info:
            client.call("ping")
        assert isinstance(exc_info.value.__cause__, ProtocolError)
        # Nothing was sent for the refused call
        assert len(transport.sent) == 1

    def test_client_unusable_after_transport_failure(self):
        def handler(request):
            raise SocketError("broken pipe")

        client = Client(LoopbackTransport(handler))
        with pytest.raises(SocketError, match="broken pipe"):
            client.call("ping")
        with pytest.raises(ProtocolError, match="unusable"):
            client.call("ping")

    def test_non_object_response(self):
        client = Client(LoopbackTransport(lambda r: ["not", "a", "response"]))
        with pytest.raises(ProtocolError, match="response must be an object"):
            client.call("ping")


class TestCommandErrors:
    """Daemon errors are reported separately from protocol errors"""

    def test_send_request_returns_daemon_error(self):
        client = Client(LoopbackTransport(reply(error="unknown command")))
        response = client.send_request(client.build_request("frobnicate"))
        assert response.error == "unknown command"
        assert response.is_error

    def test_call_params_raises_command_error(self):
        client = Client(LoopbackTransport(reply(error='"bogus" is not a valid command')))
        with pytest.raises(CommandError) as exc_info:
            client.call_params("bogus", ["a", "b c"])
        error = exc_info.value
        assert error.method == "bogus"
        assert error.params == "a, b c"
        assert error.error == '"bogus" is not a valid command'
        assert str(error) == 'command bogus(a, b c) returns error: "bogus" is not a valid command'

    def test_call_raises_command_error(self):
        client = Client(LoopbackTransport(reply(error="failed")))
        with pytest.raises(CommandError, match=r"command version\(\) returns error: failed"):
            client.call("version")

    def test_error_with_result_is_still_an_error(self):
        client = Client(LoopbackTransport(reply(result="something", error="failed")))
        with pytest.raises(CommandError):
            client.call("version")

    def test_client_usable_after_command_error(self):
        answers = iter([reply(error="failed"), reply(result="ok")])
        client = Client(LoopbackTransport(lambda r: next(answers)(r)))
        with pytest.raises(CommandError):
            client.call("first")
        assert client.call("second").result == "ok"

    def test_no_result_and_no_error(self):
        client = Client(LoopbackTransport(reply()))
        response = client.call("quiet")
        assert response.result is None


class TestResultType:

    def test_matching_type(self):
        client = Client(LoopbackTransport(reply(result={"a": 1})))
        assert client.call("show", result_type=dict).result == {"a": 1}

    def test_mismatching_type(self):
        client = Client(LoopbackTransport(reply(result=["a"])))
        with pytest.raises(SerializeError, match="expected str result for show, got list"):
            client.call("show", result_type=str)

    def test_client_usable_after_type_mismatch(self):
        client = Client(LoopbackTransport(reply(result=1)))
        with pytest.raises(SerializeError):
            client.call("show", result_type=str)
        assert client.call("show", result_type=int).result == 1

    def test_null_result_accepted(self):
        client = Client(LoopbackTransport(reply()))
        assert client.call("show", result_type=str).result is None


class TestTransportFailures:

    def test_malformed_reply(self):
        client = Client(LoopbackTransport(lambda r: b'{"result": oops}'))
        with pytest.raises(SerializeError):
            client.call("ping")

    def test_deeply_nested_reply(self):
        nested = b"[" * 200000 + b"]" * 200000
        client = Client(LoopbackTransport(lambda r: b'{"result": ' + nested + b', "error": null, "id": 1}'))
        with pytest.raises(SerializeError):
            client.call("ping")
        with pytest.raises(ProtocolError, match="unusable"):
            client.call("ping")

    def test_no_reply(self):
        client = Client(LoopbackTransport(lambda r: None))
        with pytest.raises(RpcTimeoutError):
            client.call("ping")

    def test_connect_failure_is_socket_error(self):
        client = Client(FlakyTransport(failures=1, handler=reply(result="pong")))
        with pytest.raises(SocketError, match="connection refused"):
            client.call("ping")
        assert not client.connected

    def test_connect_failure_does_not_poison_client(self):
        transport = FlakyTransport(failures=1, handler=reply(result="pong"))
        client = Client(transport)
        with pytest.raises(SocketError):
            client.call("ping")
        assert client.call("ping").result == "pong"
        assert [request["id"] for request in transport.sent] == [2]


class TestClose:

    def test_close_then_call(self, transport):
        client = Client(transport)
        client.call("ping")
        client.close()
        assert not client.connected
        with pytest.raises(SocketError, match="closed"):
            client.call("ping")

    def test_close_is_idempotent(self, transport):
        client = Client(transport)
        client.close()
        client.close()

    def test_context_manager_closes(self, transport):
        with Client(transport) as client:
            client.call("ping")
        assert not client.connected


@pytest.mark.benchmark
def test_call_latency_benchmark(client, benchmark):
    """Round trip through the full client stack"""
    result = benchmark(lambda: client.call("ping"))
    assert result.result == "pong"
